"""
Setup script for the UI element locator.
"""

from setuptools import setup, find_packages

setup(
    name="element-locator",
    version="0.1.0",
    description="Locates described UI elements on the screen with a learned element catalog, "
    "classical vision and a multimodal model quorum",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="Element Locator Team",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2.0.0",
        "pillow>=10.0.0",
        "pyautogui>=0.9.54",
        "python-dotenv>=1.0.0",
        "opencv-python>=4.8.0",
        "numpy>=1.24.0",
        "scikit-learn>=1.3.0",
        "chromadb>=0.5.0",
        "sentence-transformers>=2.2.0",
        "langchain-core>=0.2.0",
        "langchain-openai>=0.1.0",
        "langchain-anthropic>=0.1.0",
        "langchain-google-genai>=1.0.0",
        "rich>=13.0.0",
        "InquirerPy>=0.3.4",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "element-locator=element_locator.main:cli",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
