"""
Error taxonomy for document processing
"""


class FlashdeckError(Exception):
    """Base class for all flashdeck failures"""


class UnsupportedInputError(FlashdeckError):
    """Document media type is not one we can extract text from"""

    def __init__(self, media_type: str):
        self.media_type = media_type
        super().__init__(f"Unsupported document type: {media_type or 'unknown'}")


class ExtractionError(FlashdeckError):
    """Text extraction library failed on the document bytes"""


class RemoteProcessingError(FlashdeckError):
    """The remote AI service failed or returned an unusable payload"""


class UnknownCardError(FlashdeckError):
    def __init__(self, card_id: int):
        self.card_id = card_id
        super().__init__(f"Card {card_id} is not part of this deck")
