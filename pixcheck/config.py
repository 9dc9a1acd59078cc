#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

# pylint: disable=no-member, protected-access
import getpass
import os
import tempfile

from collections import OrderedDict
from datetime import datetime
from enum import Enum
from io import StringIO
from typing import Any, NamedTuple

from ruamel.yaml import YAML

from pixcheck.color import Color, ColorList, DEFAULT_COLORS
from pixcheck.driver import CaseMatrix, MatrixDriver, Size, SizeList
from pixcheck.errors import ConfigError
from pixcheck.format import DEFAULT_FORMAT_NAMES, FormatDescriptor, FormatList, PixelStorage
from pixcheck.metric import TOLERANCE
from pixcheck.types import ByteOrder, Metric, Operator, OperatorList


class Configuration(object):
    """
    Configuration hierarchy

    A NamedTuple whose unset (None) fields are looked up in its
    parent, recursively. Loaded from and saved to YAML, with values
    coerced to the declared field types.

    Call "create" to generate a base class for a concrete configuration.
    """

    __yaml_cache = {}
    _children = None
    _field_types = None

    @classmethod
    def create(cls, name, fields):
        """
        Create a new Configuration class type.
        """
        mixin = NamedTuple('_%sMixin' % name, fields)
        mixin.__new__.__defaults__ = (None,) * len(mixin._fields)

        namespace = {'_field_types': OrderedDict(fields)}
        for field in mixin._fields:
            namespace[field] = property(lambda self, _field=field: self.get(_field))

        return type(name, (cls, mixin), namespace)


    def __init__(self, *args, parent=None, **kwargs):
        if isinstance(parent, Configuration):
            parent._add_child(self)


    @property
    def children(self) -> tuple:
        """
        Children which inherit properties of this instance
        """
        return self._children or ()


    def _add_child(self, child):
        self._children = self.children + (child,)


    def __getitem__(self, key):
        """
        Fetch from the tuple, searching up the hierarchy for
        fields which are not set.
        """
        item = super().__getitem__(key)

        if isinstance(key, int) and key != self._fields.index('parent') and item is None:
            parent = super().__getitem__(self._fields.index('parent'))
            if parent is not None:
                return parent[key]

        return item


    def get(self, key: str, default=None):
        """
        Get a field by name

        :param key: Field name
        :param default: Default value if None
        :return: Value of the field
        """
        value = self[self._fields.index(key)]
        if value is None:
            return default
        return value


    def search(self, key: str, value) -> list:
        """
        Search for entries in the hierarchy

        :param key: Field name
        :param value: Field value
        :return: The matching entries
        """
        def search_recursive(obj):
            if obj.get(key) == value:
                yield obj
            for child in obj.children:
                yield from search_recursive(child)
        return list(search_recursive(self))


    def walk(self):
        """
        This entry and all of its descendants, depth first
        """
        yield self
        for child in self.children:
            yield from child.walk()


    def flatten(self) -> 'Configuration':
        """
        A standalone copy with every inherited field resolved
        """
        values = dict((field, self.get(field)) for field in self._fields if field != 'parent')
        return self.__class__(**values)


    def sparsedict(self, deep=True) -> OrderedDict:
        """
        Returns a "sparse" ordereddict with the parent->child relationships
        represented. This is used for serialization.

        :return: The sparse dict representation
        """
        odict = OrderedDict()
        for field in self._fields:
            value = tuple.__getitem__(self, self._fields.index(field))
            if field != 'parent' and value is not None:
                odict[field] = value

        if self._children:
            if deep:
                odict['children'] = [child.sparsedict() for child in self._children]
            else:
                odict['children'] = self._children

        return odict


    @classmethod
    def _coerce_types(cls, mapping):
        """
        Convert simple types where necessary and ensure ordering
        """
        odict = OrderedDict()
        for field, field_type in cls._field_types.items():
            if field == 'parent' or field not in mapping:
                continue

            val = mapping[field]
            if val is None:
                continue

            if field_type is Any or isinstance(val, field_type):
                odict[field] = val
                continue

            try:
                if field_type is bool:
                    odict[field] = _to_bool(val)
                elif isinstance(val, str) and issubclass(field_type, Enum):
                    if val.upper() in field_type.__members__:
                        odict[field] = field_type[val.upper()]
                    else:
                        odict[field] = field_type(val)
                else:
                    odict[field] = field_type(val)

            except (TypeError, ValueError, KeyError) as err:
                raise ConfigError("Can't coerce %s to type %s (from %s [%s]): %s"
                                  % (field, field_type.__name__, val, type(val).__name__, err))

        unknown = set(mapping) - set(cls._field_types) - {'children'}
        if unknown:
            raise ConfigError('Unknown configuration fields: %s' % ', '.join(sorted(unknown)))

        return odict


    @classmethod
    def load_yaml(cls, filename: str):
        """
        Load a hierarchy of sparse objects from a YAML file.

        :param filename: The filename to open.
        :return: The configuration object hierarchy
        """
        def unpack(mapping, parent=None):
            """
            Recursively create Configuration objects with the parent
            correctly set, returning the top-most parent.
            """
            if mapping is None:
                return None

            mapping = dict(mapping)
            children = mapping.pop('children', None)
            config = cls(**cls._coerce_types(mapping), parent=parent)

            for child in children or ():
                unpack(child, parent=config)
            return config

        if filename in cls.__yaml_cache:
            return cls.__yaml_cache[filename]

        with open(filename, 'r') as yaml_file:
            data = unpack(YAML(typ='rt').load(yaml_file))

        if data is not None:
            cls.__yaml_cache[filename] = data

        return data


    @property
    def yaml(self) -> str:
        stream = StringIO()
        _yaml().dump(_plain(self.sparsedict()), stream)
        return stream.getvalue()


    def save_yaml(self, filename: str):
        """
        Serialize the hierarchy to a file.

        :param filename: Target filename
        """
        with tempfile.NamedTemporaryFile('w', dir=os.path.dirname(filename) or '.',
                                         delete=False) as temp:
            temp.write('#\n')
            temp.write('#  pixcheck test matrix\n')
            temp.write('#\n')
            if self.get('name') is not None:
                temp.write('#  Profile: %s\n' % self.get('name'))
            temp.write('#  Created by %s on %s\n' % \
                (getpass.getuser(), datetime.now().isoformat(' ')))
            temp.write('#\n')
            _yaml().dump(_plain(self.sparsedict()), temp)
            tempname = temp.name
        os.replace(tempname, filename)

        if filename in self.__class__.__yaml_cache:
            del self.__class__.__yaml_cache[filename]


_BOOL_STRINGS = {'true': True, 'yes': True, 'on': True,
                 'false': False, 'no': False, 'off': False}


def _to_bool(value) -> bool:
    if isinstance(value, str):
        if value.lower() not in _BOOL_STRINGS:
            raise ValueError('not a boolean')
        return _BOOL_STRINGS[value.lower()]
    if isinstance(value, int):
        return bool(value)
    raise TypeError('not a boolean')


def _yaml() -> YAML:
    yaml = YAML(typ='rt')
    yaml.default_flow_style = None
    return yaml


def _plain(value):
    """
    Reduce configuration values to YAML-friendly builtins
    """
    if isinstance(value, dict):
        return dict((key, _plain(val)) for key, val in value.items())
    if isinstance(value, Enum):
        return value.name.lower() if isinstance(value.value, str) else value.name
    if isinstance(value, FormatDescriptor):
        return value.name
    if isinstance(value, Size):
        return str(value)
    if isinstance(value, Color):
        return [float(x) for x in value]
    if isinstance(value, (list, tuple)):
        return [_plain(x) for x in value]
    if isinstance(value, Configuration):
        return _plain(value.sparsedict())
    return value


# Configuration
BaseMatrixConfig = Configuration.create("MatrixConfig", [ \
    ('name', str),
    ('description', str),
    ('colors', ColorList),
    ('premultiply', bool),
    ('formats', FormatList),
    ('sizes', SizeList),
    ('operators', OperatorList),
    ('tolerance', float),
    ('metric', Metric),
    ('byte_order', ByteOrder),
    ('word_bits', int),
    ('parent', Any)])


class MatrixConfig(BaseMatrixConfig):
    """
    A named test matrix profile

    Loaded by Configuration from YAML. Profiles are children of the
    root profile and inherit whatever they leave unset.
    """

    PROFILES_FILE = os.path.join(os.path.dirname(__file__), 'data', 'matrix.yaml')


    @classmethod
    def profiles(cls, filename: str = None) -> 'MatrixConfig':
        """
        Root of the profile hierarchy

        :param filename: YAML file, the packaged profiles if None
        """
        config = cls.load_yaml(filename or cls.PROFILES_FILE)
        if config is None:
            raise ConfigError('No profiles in %s' % (filename or cls.PROFILES_FILE))
        return config


    @classmethod
    def get_profile(cls, name: str = None, filename: str = None) -> 'MatrixConfig':
        """
        Look up a profile by name; the root profile if name is None
        """
        root = cls.profiles(filename)
        if name is None:
            return root

        result = root.search('name', name)
        if not result:
            raise ConfigError('Unknown profile: %s (available: %s)'
                              % (name, ', '.join(p.get('name') for p in root.walk())))
        return result[0]


    def matrix(self, operators=None) -> CaseMatrix:
        """
        The CaseMatrix this profile describes

        :param operators: Override of the profile's operators
        """
        colors = self.get('colors', DEFAULT_COLORS)
        if self.get('premultiply', True):
            colors = colors.premultiply()

        if operators is None:
            operators = self.get('operators', Operator.supported())

        axes = OrderedDict((('colors', colors),
                            ('formats', self.get('formats', FormatList(DEFAULT_FORMAT_NAMES))),
                            ('sizes', self.get('sizes', SizeList(['1', '1R', '10']))),
                            ('operators', OperatorList(operators))))

        empty = [name for name, values in axes.items() if not values]
        if empty:
            raise ConfigError('Profile %s has no %s to test'
                              % (self.get('name', '-'), ', '.join(empty)))

        return CaseMatrix(*axes.values())


    def storage(self) -> PixelStorage:
        """
        Pixel storage of the target; native byte order unless configured
        """
        word_bits = self.get('word_bits', 32)
        byte_order = self.get('byte_order')
        if byte_order is None:
            return PixelStorage.native(word_bits)
        return PixelStorage(byte_order, word_bits)


    def driver(self, engine, operators=None) -> MatrixDriver:
        """
        A MatrixDriver running this profile on an engine
        """
        return MatrixDriver(engine, self.matrix(operators),
                            tolerance=self.get('tolerance', TOLERANCE),
                            metric=self.get('metric', Metric.FIXED))
