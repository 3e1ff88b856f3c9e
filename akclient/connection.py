import logging
import socket
import threading

from akclient import description
from akclient import protocol

log = logging.getLogger(__name__)

DEFAULT_PORT = 2500
DEFAULT_TIMEOUT = 10.0

class Connection(object):
    """A connection to an AK device.

    Commands are exchanged strictly one at a time; use clone() to get
    further connections for parallel use.
    """

    def __init__(self, host='localhost', port=DEFAULT_PORT, channel=0, name=None,
                 description=None, syntax=protocol.DEFAULT_SYNTAX,
                 timeout=DEFAULT_TIMEOUT):
        self.host = host
        self.port = port
        # " K<channel>" is added to every command sent with send() if >= 0
        self.channel = channel
        self.name = name
        self.description = description
        self.syntax = syntax
        self.timeout = timeout

        self.log_request = False
        self.log_response = True

        self.result = None

        self._sock = None
        self._f = None
        self._lock = threading.Lock()

    def __repr__(self):
        return 'Connection(%r, %r, name=%r)' % (self.host, self.port, self.name)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()

    def _prefix(self):
        return '[%s] ' % (self.name,) if self.name else ''

    @property
    def connected(self):
        return self._sock is not None

    def clone(self, new_name):
        """A new, unconnected connection with the same configuration."""
        ak = Connection(
            self.host, self.port, self.channel, new_name,
            self.description, self.syntax, self.timeout,
        )
        ak.log_request = self.log_request
        ak.log_response = self.log_response
        return ak

    def connect(self):
        self.disconnect()

        log.info('%sConnecting to %s:%d...', self._prefix(), self.host, self.port)
        try:
            sock = socket.create_connection((self.host, self.port), self.timeout)
        except OSError as e:
            raise ConnectionError(
                'Cannot connect to %s:%d: %s' % (self.host, self.port, e)
            ) from e

        with self._lock:
            self._sock = sock
            self._f = sock.makefile(mode='rwb')
        return self

    def disconnect(self):
        with self._lock:
            sock, f = self._sock, self._f
            self._sock = self._f = None

        if sock is not None:
            log.info('%sDisconnecting from %s:%d', self._prefix(), self.host, self.port)
            try:
                f.close()
            finally:
                sock.close()
        return self

    def abort(self):
        """Interrupt a send() blocked in another thread.

        The blocked call raises ConnectionError; the connection must be
        reconnected afterwards.
        """
        with self._lock:
            sock = self._sock
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # already closed by the device
                pass

    def load_description(self, filename, base_dir=None):
        self.description = description.load(filename, base_dir, self.syntax)
        return self.description

    def describe(self, command):
        if self.description is None:
            return 'No description available for %s.' % (command,)
        return self.description.describe(command)

    def commands(self):
        """Map each described command name to a function issuing it."""
        if self.description is None:
            return {}

        def make(name):
            def handler(*params):
                return self.issue(name, *params)
            handler.__name__ = name
            handler.__doc__ = self.description.describe(name)
            return handler

        return dict((name, make(name)) for name in self.description.commands)

    def issue(self, name, *params):
        """Send the command name with the given parameters."""
        if not self.syntax.is_command(name):
            raise ValueError('%r is not an AK command' % (name,))
        return self.send(' '.join([name] + [str(p) for p in params]))

    def send(self, text):
        if self.channel >= 0:
            text = '%s K%d' % (text, self.channel)
        return self.send_raw(text)

    def send_raw(self, request):
        """Send a request exactly as given and wait for the response."""
        f = self._f
        if f is None:
            raise ConnectionError('Not connected to %s:%d' % (self.host, self.port))

        if self.log_request:
            log.info('%s%s', self._prefix(), request)

        data = protocol.to_binary(request)
        log.debug('%s>> %r', self._prefix(), data)
        try:
            f.write(data)
            f.flush()
            response = protocol.read_response(f)
        except socket.timeout:
            # the file object cannot be read again after a timeout
            self.disconnect()
            raise
        except ConnectionError:
            raise
        except OSError as e:
            raise ConnectionError(
                'Connection to %s:%d failed: %s' % (self.host, self.port, e)
            ) from e
        log.debug('%s<< %r', self._prefix(), response)

        if self.log_response:
            log.info('%s: %s', self._prefix(), response)

        self.result = protocol.parse_response(
            request, response, self.syntax, self.description,
        )
        return self.result
