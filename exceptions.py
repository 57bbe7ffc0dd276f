"""
PokeScan - Scan Errors
A raised ScanError always means an operational problem. "No card matched"
is an empty result list, never an exception.
"""


class ScanError(Exception):
    """Base class for identification pipeline failures"""


class NoImageProvided(ScanError, ValueError):
    """The caller supplied empty or missing image data"""


class RecognitionFailure(ScanError):
    """The text recognizer could not be reached or returned an error"""


class DecodeFailure(ScanError, ValueError):
    """Image bytes could not be decoded as an image"""
