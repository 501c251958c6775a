from __future__ import annotations


class PdfFormFillerError(Exception):
    pass


class InvalidUriError(PdfFormFillerError, ValueError):
    def __init__(self, url: str):
        super().__init__(f"The URL was not a valid, absolute URI: {url}")
        self.url = url


class FetchFailedError(PdfFormFillerError):
    def __init__(self, url: str):
        super().__init__(f"No PDF stream available from {url}")
        self.url = url


class InvalidFieldDataError(PdfFormFillerError, ValueError):
    pass
