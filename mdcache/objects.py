from enum import Enum, IntEnum
import re

from dataclasses import dataclass, field
from dataslots import dataslots
from typing import List, Optional

from mdcache.error import InvalidEapi, InvalidKeyword, InvalidIUse, InvalidPhase, InvalidDependency


class Eapi(IntEnum):
    zero = 0
    one = 1
    two = 2
    three = 3
    four = 4
    five = 5
    six = 6
    seven = 7
    eight = 8
    nine = 9

    @staticmethod
    def parse(value):
        # Only the canonical single digit spellings, "07" or " 7" are not EAPIs.
        if len(value) != 1 or value not in '0123456789':
            raise InvalidEapi(value)

        return Eapi(int(value))

    def __str__(self):
        return str(self.value)

    def has_src_prepare(self):
        return self >= Eapi.two

    def has_src_uri_arrows(self):
        return self >= Eapi.two

    def has_properties(self):
        return self >= Eapi.three

    def has_required_use(self):
        return self >= Eapi.four

    def has_pkg_pretend(self):
        return self >= Eapi.four

    def has_at_most_one_of(self):
        return self >= Eapi.five

    def has_slot_operators(self):
        return self >= Eapi.five

    def has_bdepend(self):
        return self >= Eapi.seven

    def has_idepend(self):
        return self >= Eapi.eight

    def has_use_conditional_restrict(self):
        return self >= Eapi.eight

    def has_selective_uri_restrictions(self):
        return self >= Eapi.eight


class Stability(Enum):
    stable = ''
    testing = '~'
    disabled = '-'
    disabled_all = '-*'


@dataslots
@dataclass
class Keyword:
    arch: str
    stability: Stability = Stability.stable

    @staticmethod
    def parse(token):
        if not token:
            raise InvalidKeyword('empty keyword')

        if token == '-*':
            return Keyword('*', Stability.disabled_all)

        if token[0] in '~-':
            if len(token) == 1:
                raise InvalidKeyword(token)
            return Keyword(token[1:], Stability(token[0]))

        return Keyword(token)

    @staticmethod
    def parse_line(line):
        return [Keyword.parse(token) for token in line.split()]

    def __str__(self):
        if self.stability is Stability.disabled_all:
            return '-*'
        return self.stability.value + self.arch


class IUseDefault(Enum):
    enabled = '+'
    disabled = '-'


@dataslots
@dataclass
class IUse:
    name: str
    default: Optional[IUseDefault] = None

    @staticmethod
    def parse(token):
        if not token:
            raise InvalidIUse('empty IUSE entry')

        if token[0] in '+-':
            if len(token) == 1:
                raise InvalidIUse(token)
            return IUse(token[1:], IUseDefault(token[0]))

        return IUse(token)

    @staticmethod
    def parse_line(line):
        return [IUse.parse(token) for token in line.split()]

    def __str__(self):
        if self.default is None:
            return self.name
        return self.default.value + self.name


class Phase(Enum):
    pretend = 'pkg_pretend'
    setup = 'pkg_setup'
    unpack = 'src_unpack'
    prepare = 'src_prepare'
    configure = 'src_configure'
    compile = 'src_compile'
    test = 'src_test'
    install = 'src_install'
    preinst = 'pkg_preinst'
    postinst = 'pkg_postinst'
    prerm = 'pkg_prerm'
    postrm = 'pkg_postrm'
    config = 'pkg_config'
    info = 'pkg_info'
    nofetch = 'pkg_nofetch'

    @staticmethod
    def parse(token):
        """Accepts the short DEFINED_PHASES spelling as well as the function name."""
        try:
            return Phase[token]
        except KeyError:
            pass

        try:
            return Phase(token)
        except ValueError:
            raise InvalidPhase(token) from None

    @staticmethod
    def parse_line(line):
        line = line.strip()
        # The cache writes "-" when an ebuild defines no phase functions.
        if not line or line == '-':
            return []

        return [Phase.parse(token) for token in line.split()]

    def __str__(self):
        return self.name


@dataslots
@dataclass
class Slot:
    slot: str
    subslot: Optional[str] = None

    @staticmethod
    def parse(value):
        slot, sep, subslot = value.partition('/')
        return Slot(slot, subslot if sep else None)

    def __str__(self):
        if self.subslot is None:
            return self.slot
        return '{}/{}'.format(self.slot, self.subslot)


# Expression trees. Leaves are the per field atoms, every grouping node owns an ordered list of
# entries. str() gives the canonical serialization.


def render_entries(entries):
    return ' '.join(str(entry) for entry in entries)


@dataclass
class AllOf:
    """Top level conjunction, written without brackets."""

    entries: list = field(default_factory=list)

    def __str__(self):
        return render_entries(self.entries)


@dataclass
class Group:
    entries: list = field(default_factory=list)

    operator = None

    def __str__(self):
        if self.operator is None:
            return '( {} )'.format(render_entries(self.entries))
        return '{} ( {} )'.format(self.operator, render_entries(self.entries))


@dataclass
class AnyOf(Group):
    operator = '||'


@dataclass
class ExactlyOne(Group):
    operator = '^^'


@dataclass
class AtMostOne(Group):
    operator = '??'


@dataclass
class UseConditional:
    flag: str
    negated: bool = False
    entries: list = field(default_factory=list)

    def __str__(self):
        return '{}{}? ( {} )'.format('!' if self.negated else '', self.flag, render_entries(self.entries))


@dataslots
@dataclass
class License:
    name: str

    def __str__(self):
        return self.name


@dataslots
@dataclass
class Flag:
    name: str
    negated: bool = False

    def __str__(self):
        return '!' + self.name if self.negated else self.name


@dataslots
@dataclass
class Restriction:
    value: str

    def __str__(self):
        return self.value


class UriRestriction(Enum):
    fetch = 'fetch'
    mirror = 'mirror'


def filename_from_url(url):
    return url.rsplit('/', 1)[-1].split('?', 1)[0]


@dataclass
class SrcUri:
    url: str
    target: Optional[str] = None
    restriction: Optional[UriRestriction] = None
    # Only derived when there is no "-> target" rename.
    filename: Optional[str] = field(init=False, default=None)

    def __post_init__(self):
        if self.target is None:
            self.filename = filename_from_url(self.url)

    @property
    def distfile(self):
        return self.target if self.target is not None else self.filename

    def __str__(self):
        uri = self.url
        if self.restriction is not None:
            uri = '{}+{}'.format(self.restriction.value, uri)
        if self.target is not None:
            uri = '{} -> {}'.format(uri, self.target)
        return uri


_USE_DEP_RE = re.compile(r'^(?P<prefix>[-!]?)(?P<name>[A-Za-z0-9][A-Za-z0-9+_@\-]*)'
                         r'(?P<default>\([+-]\))?(?P<suffix>[=?]?)$')


@dataslots
@dataclass
class UseDep:
    name: str
    prefix: str = ''
    default: str = ''
    suffix: str = ''

    @staticmethod
    def parse(token):
        match = _USE_DEP_RE.match(token)
        if match is None:
            raise InvalidDependency('invalid USE dependency {!r}'.format(token))

        prefix, suffix = match.group('prefix'), match.group('suffix')

        # "!flag" needs "=" or "?", "-flag" takes neither.
        if (prefix == '!' and not suffix) or (prefix == '-' and suffix):
            raise InvalidDependency('invalid USE dependency {!r}'.format(token))

        return UseDep(match.group('name'), prefix, match.group('default') or '', suffix)

    def __str__(self):
        return self.prefix + self.name + self.default + self.suffix


_ATOM_RE = re.compile(r'''
    ^(?P<blocker>!!?)?
    (?P<operator><=|>=|<|>|=|~)?
    (?P<category>[A-Za-z0-9_][A-Za-z0-9+_.\-]*)/
    (?P<package>[A-Za-z0-9_][A-Za-z0-9+_\-]*?)
    (?:-(?P<version>[0-9]+(?:\.[0-9]+)*[a-z]?(?:_(?:alpha|beta|pre|rc|p)[0-9]*)*(?:-r[0-9]+)?)
       (?P<glob>\*)?)?
    (?::(?P<slot>[^\[:]+))?
    (?:::(?P<repo>[A-Za-z0-9_][A-Za-z0-9_\-]*))?
    (?:\[(?P<use>[^\]]*)\])?$
''', re.VERBOSE)

_SLOT_RE = re.compile(r'^(?:(?P<slot>[A-Za-z0-9_][A-Za-z0-9+_.\-]*)(?:/(?P<subslot>[A-Za-z0-9_][A-Za-z0-9+_.\-]*))?)?'
                      r'(?P<operator>[=*]?)$')


@dataclass
class DepAtom:
    category: str
    package: str
    blocker: str = ''
    operator: Optional[str] = None
    version: Optional[str] = None
    glob: bool = False
    slot: Optional[str] = None
    subslot: Optional[str] = None
    slot_operator: Optional[str] = None
    repo: Optional[str] = None
    use_deps: List[UseDep] = field(default_factory=list)

    @staticmethod
    def parse(token):
        match = _ATOM_RE.match(token)
        if match is None:
            raise InvalidDependency('invalid package atom {!r}'.format(token))

        operator, version = match.group('operator'), match.group('version')
        if (operator is None) != (version is None):
            raise InvalidDependency('version and operator must be given together in {!r}'.format(token))

        glob = match.group('glob') is not None
        if glob and operator != '=':
            raise InvalidDependency('"*" suffix requires the "=" operator in {!r}'.format(token))

        atom = DepAtom(match.group('category'), match.group('package'), blocker=match.group('blocker') or '',
                       operator=operator, version=version, glob=glob, repo=match.group('repo'))

        if match.group('slot') is not None:
            slot_match = _SLOT_RE.match(match.group('slot'))
            if slot_match is None:
                raise InvalidDependency('invalid slot dependency in {!r}'.format(token))

            if slot_match.group('operator') == '*' and slot_match.group('slot'):
                raise InvalidDependency('":slot*" is not a slot dependency in {!r}'.format(token))

            atom.slot = slot_match.group('slot')
            atom.subslot = slot_match.group('subslot')
            atom.slot_operator = slot_match.group('operator') or None

        if match.group('use') is not None:
            atom.use_deps = [UseDep.parse(use) for use in match.group('use').split(',')]

        return atom

    @property
    def key(self):
        return '{}/{}'.format(self.category, self.package)

    def __str__(self):
        parts = [self.blocker, self.operator or '', self.key]
        if self.version is not None:
            parts.append('-' + self.version)
        if self.glob:
            parts.append('*')
        if self.slot is not None or self.slot_operator is not None:
            parts.append(':')
            if self.slot is not None:
                parts.append(self.slot)
            if self.subslot is not None:
                parts.append('/' + self.subslot)
            if self.slot_operator is not None:
                parts.append(self.slot_operator)
        if self.repo is not None:
            parts.append('::' + self.repo)
        if self.use_deps:
            parts.append('[{}]'.format(','.join(str(use) for use in self.use_deps)))

        return ''.join(parts)


def flat_tokens(entries):
    """Restriction values with USE conditionals and groups stripped, in order."""
    tokens = []
    for entry in entries:
        if isinstance(entry, Restriction):
            tokens.append(entry.value)
        else:
            tokens.extend(flat_tokens(entry.entries))
    return tokens


def flat_uris(entries):
    uris = []
    for entry in entries:
        if isinstance(entry, SrcUri):
            uris.append(entry)
        else:
            uris.extend(flat_uris(entry.entries))
    return uris


def walk(tree):
    """Yields every node of an expression tree (or list of entries), parents before children."""
    stack = list(reversed(tree)) if isinstance(tree, list) else [tree]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(getattr(node, 'entries', ())))
