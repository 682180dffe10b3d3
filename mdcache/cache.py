import logging

from dataclasses import dataclass, field
from typing import List, Optional

from mdcache.objects import *
from mdcache.parser import parse_license, parse_required_use, parse_restrict, parse_src_uri, parse_dependencies

from mdcache.error import MissingField, InvalidCacheEntry, InvalidDependency, DependencyError


LOGGER = logging.getLogger(__name__)


DEPENDENCY_KEYS = ('DEPEND', 'RDEPEND', 'BDEPEND', 'PDEPEND', 'IDEPEND')


@dataclass
class EbuildMetadata:
    eapi: Eapi
    description: str
    slot: Slot
    homepage: List[str] = field(default_factory=list)
    src_uri: list = field(default_factory=list)
    license: Optional[object] = None
    keywords: List[Keyword] = field(default_factory=list)
    iuse: List[IUse] = field(default_factory=list)
    required_use: Optional[object] = None
    restrict: list = field(default_factory=list)
    properties: list = field(default_factory=list)
    depend: list = field(default_factory=list)
    rdepend: list = field(default_factory=list)
    bdepend: list = field(default_factory=list)
    pdepend: list = field(default_factory=list)
    idepend: list = field(default_factory=list)
    inherited: List[str] = field(default_factory=list)
    defined_phases: List[Phase] = field(default_factory=list)

    def unsupported_features(self):
        """Names the constructs used by this record which its EAPI does not allow.

        Parsing accepts every construct regardless of EAPI, this is an advisory check on top of it.
        """
        eapi = self.eapi
        problems = []

        if self.bdepend and not eapi.has_bdepend():
            problems.append('BDEPEND')
        if self.idepend and not eapi.has_idepend():
            problems.append('IDEPEND')
        if self.required_use is not None and not eapi.has_required_use():
            problems.append('REQUIRED_USE')
        if self.properties and not eapi.has_properties():
            problems.append('PROPERTIES')

        if self.required_use is not None and not eapi.has_at_most_one_of():
            if any(isinstance(node, AtMostOne) for node in walk(self.required_use)):
                problems.append("'??' group")

        if not eapi.has_use_conditional_restrict():
            if any(isinstance(node, UseConditional) for node in walk(self.restrict)):
                problems.append('USE conditional RESTRICT')
            if any(isinstance(node, UseConditional) for node in walk(self.properties)):
                problems.append('USE conditional PROPERTIES')

        uris = flat_uris(self.src_uri)
        if not eapi.has_src_uri_arrows() and any(uri.target is not None for uri in uris):
            problems.append("SRC_URI '->'")
        if not eapi.has_selective_uri_restrictions() and any(uri.restriction is not None for uri in uris):
            problems.append('SRC_URI fetch+/mirror+')

        if not eapi.has_slot_operators():
            for key in DEPENDENCY_KEYS:
                atoms = walk(getattr(self, key.lower()))
                if any(isinstance(atom, DepAtom) and atom.slot_operator is not None for atom in atoms):
                    problems.append('slot operator in ' + key)

        if Phase.prepare in self.defined_phases and not eapi.has_src_prepare():
            problems.append('src_prepare')
        if Phase.pretend in self.defined_phases and not eapi.has_pkg_pretend():
            problems.append('pkg_pretend')

        return problems


@dataclass
class CacheEntry:
    metadata: EbuildMetadata
    md5: Optional[str] = None
    # (eclass name, checksum) pairs, in file order.
    eclasses: list = field(default_factory=list)

    def serialize(self) -> str:
        metadata = self.metadata
        lines = ['DEFINED_PHASES=' + (' '.join(str(phase) for phase in metadata.defined_phases) or '-')]

        def add(key, value):
            if value:
                lines.append('{}={}'.format(key, value))

        add('DEPEND', render_entries(metadata.depend))
        lines.append('DESCRIPTION=' + metadata.description)
        lines.append('EAPI={}'.format(metadata.eapi))
        add('HOMEPAGE', ' '.join(metadata.homepage))
        add('IUSE', render_entries(metadata.iuse))
        add('KEYWORDS', render_entries(metadata.keywords))
        if metadata.license is not None:
            add('LICENSE', str(metadata.license))
        add('PDEPEND', render_entries(metadata.pdepend))
        add('RDEPEND', render_entries(metadata.rdepend))
        if metadata.required_use is not None:
            add('REQUIRED_USE', str(metadata.required_use))
        add('RESTRICT', render_entries(metadata.restrict))
        lines.append('SLOT={}'.format(metadata.slot))
        add('SRC_URI', render_entries(metadata.src_uri))
        add('BDEPEND', render_entries(metadata.bdepend))
        add('IDEPEND', render_entries(metadata.idepend))
        add('PROPERTIES', render_entries(metadata.properties))
        add('INHERITED', ' '.join(metadata.inherited))

        if self.eclasses:
            lines.append('_eclasses_=' + '\t'.join('{}\t{}'.format(name, md5) for name, md5 in self.eclasses))
        if self.md5 is not None:
            lines.append('_md5_=' + self.md5)

        lines.append('')
        return '\n'.join(lines)


def parse_eclasses(value):
    if not value:
        return []

    tokens = value.split('\t')
    if len(tokens) % 2:
        LOGGER.debug('Dropping unpaired _eclasses_ entry %r', tokens[-1])
        tokens.pop()

    return list(zip(tokens[::2], tokens[1::2]))


def parse_dependency_field(key, value):
    try:
        return parse_dependencies(value)
    except InvalidDependency as e:
        raise DependencyError(key, e) from e


def parse_cache(data: str) -> CacheEntry:
    """Parses the contents of one md5-cache file.

    Every non-blank line must be ``KEY=value``. Unknown keys are ignored and a repeated key keeps its
    last value. DESCRIPTION and SLOT are required, a missing EAPI means EAPI 0.
    """
    values = {}
    for raw in data.split('\n'):
        line = raw.strip()
        if not line:
            continue

        key, sep, value = line.partition('=')
        if not sep:
            raise InvalidCacheEntry(line)

        if key not in KNOWN_KEYS:
            LOGGER.debug('Ignoring unknown cache key %r', key)
            continue

        if key == '_eclasses_':
            # Checksums may be empty, so only the line ending is removed.
            value = raw.lstrip().partition('=')[2].rstrip('\r')

        values[key] = value

    eapi = Eapi.parse(values['EAPI']) if 'EAPI' in values else Eapi.zero

    if 'DESCRIPTION' not in values:
        raise MissingField('DESCRIPTION')
    if not values.get('SLOT'):
        raise MissingField('SLOT')

    metadata = EbuildMetadata(eapi, values['DESCRIPTION'], Slot.parse(values['SLOT']))

    def get(key):
        return values.get(key, '')

    metadata.homepage = get('HOMEPAGE').split()
    metadata.keywords = Keyword.parse_line(get('KEYWORDS'))
    metadata.iuse = IUse.parse_line(get('IUSE'))
    metadata.inherited = get('INHERITED').split()
    metadata.defined_phases = Phase.parse_line(get('DEFINED_PHASES'))

    if get('SRC_URI'):
        metadata.src_uri = parse_src_uri(get('SRC_URI'))
    if get('LICENSE'):
        metadata.license = parse_license(get('LICENSE'))
    if get('REQUIRED_USE'):
        metadata.required_use = parse_required_use(get('REQUIRED_USE'))
    if get('RESTRICT'):
        metadata.restrict = parse_restrict(get('RESTRICT'))
    if get('PROPERTIES'):
        metadata.properties = parse_restrict(get('PROPERTIES'))

    for key in DEPENDENCY_KEYS:
        if get(key):
            setattr(metadata, key.lower(), parse_dependency_field(key, get(key)))

    entry = CacheEntry(metadata, md5=get('_md5_') or None)
    if get('_eclasses_'):
        entry.eclasses = parse_eclasses(get('_eclasses_'))

    return entry


KNOWN_KEYS = frozenset((
    'DEFINED_PHASES', 'DEPEND', 'DESCRIPTION', 'EAPI', 'HOMEPAGE', 'IUSE', 'KEYWORDS', 'LICENSE',
    'PDEPEND', 'RDEPEND', 'REQUIRED_USE', 'RESTRICT', 'SLOT', 'SRC_URI', 'BDEPEND', 'IDEPEND',
    'PROPERTIES', 'INHERITED', '_eclasses_', '_md5_',
))


def parse_cache_file(fp) -> CacheEntry:
    """Parses a cache file given as a path or an open text file."""
    if hasattr(fp, 'read'):
        return parse_cache(fp.read())

    with open(fp, 'r', encoding='utf-8') as f:
        return parse_cache(f.read())


def parse_cache_files(fps) -> list:
    """Parses several cache files, the entries come back in the order of 'fps'."""
    entries = []
    for fp in fps:
        LOGGER.debug('Parsing cache file %s', fp)
        entries.append(parse_cache_file(fp))

    return entries
