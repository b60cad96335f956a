from abc import ABC
from typing import List


class TextEmbeddings(ABC):
    """
    Computes vector embeddings for section text.
    """

    async def create_embeddings(self, texts: List[str]) -> List[List[float]]:
        raise NotImplementedError


class ImageEmbeddings(ABC):
    """
    Computes a vector embedding for an image, given a URL the service can read.
    """

    async def create_embedding(self, image_url: str) -> List[float]:
        raise NotImplementedError
