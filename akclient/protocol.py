import re

from akclient.description import UnknownFieldError, coerce

STX = b'\x02'
ETX = b'\x03'

COMMAND_PATTERN = '[A-Z]{4,5}'

# first response value when the device rejected a command
ERROR_CODES = ('BS', 'SE', 'NA', 'DF', 'OF')

# the device did not echo the command we sent
UNKNOWN_COMMAND = '????'

class Syntax(object):
    """Command name pattern and error codes used to read responses."""

    def __init__(self, command_pattern=COMMAND_PATTERN, error_codes=ERROR_CODES):
        self.command_pattern = command_pattern
        self.error_codes = frozenset(error_codes)

        self._command = re.compile(command_pattern)
        self._response = re.compile(r'^(%s)( \d)?(.*)$' % command_pattern)
        self._raw_line = re.compile(r'^\s*%s(\s+[^(]|$)' % command_pattern)

    def match_command(self, text):
        """Return the command name at the start of text, or None."""
        m = self._command.match(text)
        return m.group(0) if m else None

    def is_command(self, name):
        return self._command.fullmatch(name) is not None

    def is_raw_command(self, line):
        """Does the line consist solely of a command and its parameters?"""
        return self._raw_line.match(line) is not None

    def match_response(self, response):
        return self._response.match(response)

DEFAULT_SYNTAX = Syntax()

def to_binary(text):
    return STX + b' ' + text.encode('utf-8') + ETX

def read_until(f, term):
    assert len(term) == 1
    data = []
    c = f.read(1)
    while c != term:
        if not c:
            raise ConnectionError('Connection closed by device.')
        data.append(c)
        c = f.read(1)
    return b''.join(data)

def read_response(f):
    # anything before the start marker is left over from an earlier exchange
    read_until(f, STX)
    # the device always sends one filler byte after the start marker
    if not f.read(1):
        raise ConnectionError('Connection closed by device.')
    return read_until(f, ETX).decode('utf-8', errors='replace')

def parse_response(request, response, syntax=DEFAULT_SYNTAX, description=None):
    command = syntax.match_command(request)

    m = syntax.match_response(response)
    if not m or m.group(1) != command:
        return Result(request, response, command, error_code=UNKNOWN_COMMAND,
                      description=description)

    status = m.group(2)
    error_status = int(status) if status else 0
    values = tuple(m.group(3).split())

    if values and values[0] in syntax.error_codes:
        error_code = values[0]
    else:
        error_code = ''

    return Result(request, response, command, error_status, values,
                  error_code, description)

class Result(object):
    """The parsed response to a single AK command."""

    __slots__ = (
        'request', 'response', 'command', 'error_status', 'values',
        'error_code', 'description',
    )

    def __init__(self, request, response, command, error_status=0, values=(),
                 error_code='', description=None):
        set_ = super(Result, self).__setattr__
        set_('request', request)
        set_('response', response)
        set_('command', command)
        set_('error_status', error_status)
        set_('values', tuple(values))
        set_('error_code', error_code)
        set_('description', description)

    def __setattr__(self, name, value):
        raise AttributeError('Result is read-only')

    def is_success(self):
        return not self.error_code

    def as_string(self):
        return self.response

    def at(self, index, type_name=None):
        """Return the value at the given (zero-based) position.

        Positions outside the received values give an empty string.
        """
        if not 0 <= index < len(self.values):
            return ''
        return coerce(self.values[index], type_name)

    def get(self, name):
        """Return the named response value, converted to its declared type.

        Requires a device description describing the command.
        """
        if self.description is None:
            raise UnknownFieldError(
                '%s does not have %s (no device description).' % (self.command, name)
            )
        index, type_name = self.description.response_field(self.command, name)
        return self.at(index, type_name)

    def __getitem__(self, key):
        if isinstance(key, int):
            return self.at(key)
        return self.get(key)

    def __repr__(self):
        return 'Result(%r, %r)' % (self.request, self.response)
