"""Running AK scripts and the interactive shell.

Scripts are Python with one addition: a line that consists solely of an AK
command and its parameters (``EMUL 50``) is sent as is on the default
connection ``ak``. Once a device description is loaded, every command it
describes is also available as a function (``ASTA().get('userLevel')``).
"""

import code
import os
import re
import sys
import time

EXIT_WORDS = ('exit', 'continue')

_help_line = re.compile(r'^(\s*)help\s+(\S+)\s*$')

def benchmark(func, *args, **kwargs):
    """Return the time taken by func in milliseconds."""
    start = time.perf_counter()
    func(*args, **kwargs)
    return (time.perf_counter() - start) * 1000

class Session(object):
    def __init__(self, ak):
        self.ak = ak
        self.script_dir = ''
        self.namespace = {
            '__name__': '__akscript__',
            'ak': ak,
            'benchmark': benchmark,
            'load_description': self.load_description,
        }
        self.namespace.update(ak.commands())

    def load_description(self, filename):
        """Load a device description relative to the running script."""
        description = self.ak.load_description(filename, self.script_dir)
        self.namespace.update(self.ak.commands())
        return description

    def translate(self, line):
        m = _help_line.match(line)
        if m:
            indent, command = m.groups()
            return '%sprint(ak.describe(%r))' % (indent, command)

        if self.ak.syntax.is_raw_command(line):
            indent = line[:len(line) - len(line.lstrip())]
            return '%sak.send_raw(%r)' % (indent, line.strip())

        return line

    def run(self, text, filename='<script>', script_dir=''):
        self.script_dir = script_dir
        source = '\n'.join(self.translate(line) for line in text.splitlines())
        exec(compile(source, filename, 'exec'), self.namespace)

    def run_file(self, filename):
        with open(filename, encoding='utf-8') as f:
            text = f.read()
        self.run(text, filename, os.path.dirname(os.path.abspath(filename)))

    def interact(self):
        Shell(self).interact()

class Shell(code.InteractiveConsole):
    """Reads and runs one line at a time until 'exit' or 'continue'.

    Errors are reported and do not end the shell.
    """

    prompt = '> '

    def __init__(self, session):
        code.InteractiveConsole.__init__(self, session.namespace)
        self.session = session

    def raw_input(self, prompt=''):
        line = input(prompt)
        if line.strip() in EXIT_WORDS:
            raise EOFError
        return line

    def push(self, line, *args, **kwargs):
        return code.InteractiveConsole.push(
            self, self.session.translate(line), *args, **kwargs
        )

    def interact(self):
        saved = getattr(sys, 'ps1', None), getattr(sys, 'ps2', None)
        sys.ps1, sys.ps2 = self.prompt, '. '
        try:
            code.InteractiveConsole.interact(self, banner='', exitmsg='')
        finally:
            for name, value in zip(('ps1', 'ps2'), saved):
                if value is None:
                    delattr(sys, name)
                else:
                    setattr(sys, name, value)
