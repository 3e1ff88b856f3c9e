"""Device descriptions: optional metadata about the commands of a device.

A device description is a JSON document of the form::

    {"AK": {
        "ASTA": {
            "Parameters": [{"Name": "Type"}, ...],
            "Optional": [{"Name": "Type"}, ...],
            "Response": [{"Status": "String"}, {"UserLevel": "Int"}, ...]
        },
        ...
    }}

Field names are uncapitalised on load, so ``UserLevel`` is looked up as
``userLevel``. Any other top-level sections are kept in ``extra``.
"""

from collections import namedtuple
from decimal import Decimal
import json
import os
from types import MappingProxyType

SECTIONS = ('Parameters', 'Optional', 'Response')

Field = namedtuple('Field', 'name type')
Command = namedtuple('Command', 'parameters optional response')

class DescriptionError(ValueError):
    pass

class UnknownFieldError(LookupError):
    pass

def coerce(token, type_name):
    if type_name == 'Int':
        return int(token)
    elif type_name == 'Float':
        return Decimal(token)
    return token

def uncapitalize(name):
    return name[:1].lower() + name[1:]

def _parse_fields(command, section, items):
    if not isinstance(items, list):
        raise DescriptionError('%s.%s must be a list' % (command, section))

    fields = []
    for item in items:
        if not isinstance(item, dict) or len(item) != 1:
            raise DescriptionError(
                '%s.%s: expected {name: type}, got %r' % (command, section, item)
            )
        (name, type_name), = item.items()
        if not isinstance(type_name, str):
            raise DescriptionError(
                '%s.%s: type of %s must be a string' % (command, section, name)
            )
        fields.append(Field(uncapitalize(name), type_name))
    return tuple(fields)

class DeviceDescription(object):
    def __init__(self, commands, extra=None):
        self.commands = MappingProxyType(dict(commands))
        self.extra = MappingProxyType(dict(extra or {}))

    @classmethod
    def from_dict(cls, data, syntax=None):
        if not isinstance(data, dict):
            raise DescriptionError('Device description must be a JSON object')

        ak = data.get('AK')
        if not isinstance(ak, dict) or not ak:
            raise DescriptionError('Device description has no "AK" commands')

        commands = {}
        for name, sections in ak.items():
            if syntax is not None and not syntax.is_command(name):
                raise DescriptionError('%r is not a valid command name' % (name,))
            if not isinstance(sections, dict):
                raise DescriptionError('%s must be a JSON object' % (name,))

            unknown = set(sections) - set(SECTIONS)
            if unknown:
                raise DescriptionError(
                    '%s: unknown sections %s' % (name, ', '.join(sorted(unknown)))
                )

            commands[name] = Command(*[
                _parse_fields(name, section, sections.get(section, []))
                for section in SECTIONS
            ])

        extra = dict((k, v) for k, v in data.items() if k != 'AK')
        return cls(commands, extra)

    def __contains__(self, command):
        return command in self.commands

    def response_field(self, command, name):
        """Return (position, type) of a named response value."""
        try:
            fields = self.commands[command].response
        except KeyError:
            raise UnknownFieldError('%s does not have %s.' % (command, name))

        for index, field in enumerate(fields):
            if field.name == name:
                return index, field.type
        raise UnknownFieldError('%s does not have %s.' % (command, name))

    def describe(self, command):
        if command not in self.commands:
            return 'No description available for %s.' % (command,)

        lines = ['[%s]' % (command,)]
        for section, fields in zip(SECTIONS, self.commands[command]):
            lines.append('\t[%s]' % (section,))
            for index, field in enumerate(fields):
                lines.append('\t\t%d: %s (%s)' % (index, field.name, field.type))
        return '\n'.join(lines)

def load(filename, base_dir=None, syntax=None):
    """Load a device description from a JSON file.

    Relative filenames are resolved against base_dir when it is given.
    """
    if base_dir and not os.path.isabs(filename):
        filename = os.path.join(base_dir, filename)

    with open(filename, encoding='utf-8') as f:
        try:
            data = json.load(f)
        except ValueError as e:
            raise DescriptionError('%s: %s' % (filename, e))

    return DeviceDescription.from_dict(data, syntax)
