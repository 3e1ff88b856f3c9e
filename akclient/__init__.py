from akclient.connection import Connection
from akclient.description import DescriptionError, DeviceDescription, UnknownFieldError
from akclient.protocol import ERROR_CODES, Result, Syntax

__all__ = [
    'Connection', 'DescriptionError', 'DeviceDescription', 'ERROR_CODES',
    'Result', 'Syntax', 'UnknownFieldError',
]
