"""
Structured multimodal model calls over a LangChain chat model.
"""

import logging
from typing import Optional, Sequence, Type, TypeVar

from langchain_core.messages import HumanMessage
from PIL import Image
from pydantic import BaseModel

from ..exceptions import ModelCallError
from ..utils.image_utils import image_to_base64

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class MultimodalModelClient:
    """
    Sends a text prompt plus screenshots and parses the answer into a pydantic model.

    The wrapped chat model is only used through its synchronous invoke, so
    one client can serve concurrent calls from a thread pool.
    """

    def __init__(self, llm=None):
        """
        Initialize model client.

        Args:
            llm: LangChain chat model supporting images, defaults to LLMConfig's vision model
        """
        if llm is None:
            from ..config.llm_config import LLMConfig

            llm = LLMConfig.get_vision_llm()
        self.llm = llm

    def generate(
        self,
        prompt: str,
        images: Sequence[Image.Image],
        response_model: Type[ResponseT],
        purpose: Optional[str] = None,
    ) -> ResponseT:
        """
        Run one structured model call.

        Args:
            prompt: Text part of the request
            images: Screenshots appended after the prompt as PNG
            response_model: Pydantic model describing the expected answer
            purpose: Short label used in logs

        Returns:
            Parsed response

        Raises:
            ModelCallError: The call failed or the answer could not be parsed
        """
        purpose = purpose or response_model.__name__
        content = [{"type": "text", "text": prompt}]
        for image in images:
            content.append(
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:image/png;base64,{image_to_base64(image)}"},
                }
            )

        try:
            structured_llm = self.llm.with_structured_output(response_model)
            response = structured_llm.invoke([HumanMessage(content=content)])
        except Exception as e:
            logger.debug("Model call '%s' failed: %s", purpose, e)
            raise ModelCallError(f"Model call '{purpose}' failed: {e}") from e

        if isinstance(response, dict):
            try:
                response = response_model.model_validate(response)
            except ValueError as e:
                raise ModelCallError(
                    f"Model call '{purpose}' returned an invalid response: {e}"
                ) from e

        if not isinstance(response, response_model):
            raise ModelCallError(
                f"Model call '{purpose}' returned {type(response).__name__} "
                f"instead of {response_model.__name__}"
            )

        logger.debug("Model call '%s' succeeded", purpose)
        return response
