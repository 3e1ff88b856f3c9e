import argparse
from configparser import ConfigParser, Error as ConfigError
import logging
import os
import sys

import appdirs

from akclient.connection import Connection, DEFAULT_PORT, DEFAULT_TIMEOUT
from akclient.description import DescriptionError
from akclient.script import Session

def default_config_path():
    return os.path.join(appdirs.user_config_dir('akclient'), 'akclient.conf')

def make_parser():
    parser = argparse.ArgumentParser(
        prog='akclient',
        usage='%(prog)s [options] [scriptfile(s)]',
        description='Send AK commands to a device, from scripts or interactively.',
    )
    parser.add_argument('scripts', nargs='*', metavar='scriptfile')
    parser.add_argument('-i', '--interactive', action='store_true',
                        help='Interactive mode')
    parser.add_argument('-s', '--server', help='AK server host')
    parser.add_argument('-p', '--port', type=int, help='AK server port')
    parser.add_argument('-k', '--channel', type=int,
                        help='Channel added to AK commands as K<n> (negative: none)')
    parser.add_argument('-t', '--timeout', type=float,
                        help='Seconds to wait for a response (0: wait forever)')
    parser.add_argument('-d', '--description', help='Device description (JSON)')
    parser.add_argument('-c', '--config', help='Configuration file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show the frames sent and received')
    return parser

def read_config(path):
    config = ConfigParser()
    if path is not None:
        with open(path, encoding='utf-8') as f:
            config.read_file(f)
    else:
        config.read(default_config_path(), encoding='utf-8')
    if config.has_section('default'):
        return config['default']
    return {}

def make_connection(args, config):
    host = args.server or config.get('host', 'localhost')
    port = args.port if args.port is not None else int(config.get('port', DEFAULT_PORT))
    channel = args.channel if args.channel is not None else int(config.get('channel', 0))
    timeout = args.timeout
    if timeout is None:
        timeout = float(config.get('timeout', DEFAULT_TIMEOUT))

    ak = Connection(host, port, channel, timeout=timeout or None)

    description = args.description or config.get('description')
    if description:
        ak.load_description(description)
    return ak

def setup_logging(verbose):
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s.%(msecs)03d  %(message)s', datefmt='%H:%M:%S',
    ))
    logger = logging.getLogger('akclient')
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return handler

def main(argv=None):
    parser = make_parser()
    args = parser.parse_args(argv)

    has_pipe_input = not sys.stdin.isatty()
    if not (args.scripts or args.interactive or has_pipe_input):
        parser.print_usage()
        return 0

    try:
        config = read_config(args.config)
        ak = make_connection(args, config)
    except (OSError, ValueError, ConfigError) as e:
        print(e, file=sys.stderr)
        return 1

    handler = setup_logging(args.verbose)
    session = Session(ak)
    try:
        ak.connect()

        ak.log_request = True
        for filename in args.scripts:
            session.run_file(filename)

        if has_pipe_input:
            session.run(sys.stdin.read(), '<stdin>')
        elif args.interactive:
            ak.log_request = False
            session.interact()
    except (ConnectionError, DescriptionError) as e:
        print(e, file=sys.stderr)
        return 1
    finally:
        ak.disconnect()
        logging.getLogger('akclient').removeHandler(handler)
    return 0

if __name__ == '__main__':
    raise SystemExit(main())
