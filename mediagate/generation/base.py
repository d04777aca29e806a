"""Uniform adapter contract used by the workflow engine."""

from typing import Any, Protocol, Union, runtime_checkable

from mediagate.generation.schemas import AudioResult, ImageResult, VideoResult


@runtime_checkable
class GenerationAdapter(Protocol):
    """Protocol for generation adapters.

    ``execute`` runs one generation end-to-end, writes the produced media
    to local storage and returns the tagged result. It raises
    ``InvalidInputError``, an ``UpstreamError`` subclass or ``StorageError``.
    """

    async def execute(self, request: Any) -> Union[AudioResult, ImageResult, VideoResult]: ...
