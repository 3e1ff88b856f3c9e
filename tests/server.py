from contextlib import contextmanager
import socketserver
import threading

from akclient.protocol import ETX, STX

MAX_PACKET_SIZE = 1024

class FakeDevice(object):
    """Fake implementation of the AK demo device."""

    def __init__(self):
        self.identity = 'DEMO'
        self.version = '1.00'

        self.status = 'R'
        self.device_state = 1
        self.factor = 0

        # The session holding remote control, and whether it is exclusive.
        self.remote = None
        self.exclusive = False

        # Bytes sent before each response, to be skipped by the client.
        self.noise = b''
        # Commands the device never answers.
        self.silent = set()
        # Canned responses by command name.
        self.replies = {}

        self.requests = []
        self.lock = threading.Lock()

    def release(self, session):
        with self.lock:
            if self.remote is session:
                self.remote = None
                self.exclusive = False

    def handle(self, session, command, params):
        with self.lock:
            if command in self.replies:
                return self.replies[command]

            if command == 'AKEN':
                return 'AKEN 0 %s %s 0' % (self.identity, self.version)

            elif command == 'ASTA':
                user_level = 0 if self.remote is session else -1
                return 'ASTA 0 %s %d %d' % (self.status, self.device_state, user_level)

            elif command == 'SREM':
                if self.exclusive and self.remote is not None:
                    return 'SREM 0 OF'
                self.remote = session
                return 'SREM 0'

            elif command == 'SREX':
                if self.exclusive and self.remote is not session:
                    return 'SREX 0 OF'
                self.remote = session
                self.exclusive = True
                return 'SREX 0'

            elif command == 'SMAN':
                if self.remote is session:
                    self.remote = None
                    self.exclusive = False
                return 'SMAN 0'

            elif command == 'EMUL':
                if self.remote is not session:
                    return 'EMUL 0 OF'
                if len(params) != 1 or not params[0].isdigit():
                    return 'EMUL 0 SE'
                self.factor = int(params[0])
                return 'EMUL 0'

            elif command == 'AMUL':
                return 'AMUL 0 %d' % (self.factor,)

            return '????'

class FakeDeviceSession(object):
    def __init__(self, device):
        self.device = device
        self.buffer = b''

    def feed(self, data):
        """Take bytes from the client, return the bytes to send back."""
        self.buffer += data

        out = b''
        while ETX in self.buffer:
            frame, self.buffer = self.buffer.split(ETX, 1)
            self.device.requests.append(frame + ETX)

            text = frame[frame.index(STX) + 1:].decode('utf-8')
            assert text.startswith(' ')
            words = text.split()
            command = words[0]
            # the channel is not used by this device
            params = [w for w in words[1:] if not (w[0] == 'K' and w[1:].isdigit())]

            if command in self.device.silent:
                continue

            response = self.device.handle(self, command, params)
            out += self.device.noise + STX + b' ' + response.encode('utf-8') + ETX
        return out

def make_request_handler(device):
    class Handler(socketserver.BaseRequestHandler):
        def handle(self):
            session = FakeDeviceSession(device)
            try:
                while True:
                    data = self.request.recv(MAX_PACKET_SIZE)
                    if not data:
                        break
                    out = session.feed(data)
                    if out:
                        self.request.sendall(out)
            except ConnectionError:
                pass
            finally:
                device.release(session)

    return Handler

class FakeDeviceServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

@contextmanager
def fake_device_server(device, hostport=('localhost', 0)):
    server = FakeDeviceServer(hostport, make_request_handler(device))
    thread = threading.Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()
    try:
        yield server.server_address
    finally:
        server.shutdown()
        server.server_close()
