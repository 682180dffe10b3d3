import unittest

from mdcache.error import InvalidDependency
from mdcache.objects import DepAtom, UseDep, AnyOf, Group, UseConditional, render_entries
from mdcache.parser import parse_dependencies


class TestDepAtom(unittest.TestCase):
    def test_versioned(self):
        atom = DepAtom.parse('>=dev-libs/openssl-1.1.1w:0/3=')
        self.assertEqual(atom.operator, '>=')
        self.assertEqual(atom.key, 'dev-libs/openssl')
        self.assertEqual(atom.version, '1.1.1w')
        self.assertEqual(atom.slot, '0')
        self.assertEqual(atom.subslot, '3')
        self.assertEqual(atom.slot_operator, '=')
        self.assertEqual(str(atom), '>=dev-libs/openssl-1.1.1w:0/3=')

    def test_unversioned(self):
        atom = DepAtom.parse('sys-libs/zlib')
        self.assertEqual(atom, DepAtom('sys-libs', 'zlib'))
        self.assertEqual(str(atom), 'sys-libs/zlib')

    def test_blockers(self):
        self.assertEqual(DepAtom.parse('!app-misc/foo').blocker, '!')
        self.assertEqual(DepAtom.parse('!!<app-misc/foo-2').blocker, '!!')

    def test_glob_and_revision(self):
        atom = DepAtom.parse('=dev-lang/python-3.11*')
        self.assertTrue(atom.glob)
        self.assertEqual(atom.version, '3.11')
        self.assertEqual(str(atom), '=dev-lang/python-3.11*')
        self.assertEqual(DepAtom.parse('~app-misc/foo-1.0_rc2-r3').version, '1.0_rc2-r3')

    def test_slot_and_repo(self):
        atom = DepAtom.parse('dev-qt/qtcore:5::gentoo')
        self.assertEqual(atom.slot, '5')
        self.assertEqual(atom.repo, 'gentoo')
        self.assertEqual(str(atom), 'dev-qt/qtcore:5::gentoo')
        self.assertEqual(DepAtom.parse('dev-libs/foo:=').slot_operator, '=')
        self.assertEqual(DepAtom.parse('dev-libs/foo:*').slot_operator, '*')
        self.assertIsNone(DepAtom.parse('dev-libs/foo:=').slot)

    def test_use_deps(self):
        atom = DepAtom.parse('net-misc/curl[ssl,-gnutls,http2(+)?,!test=]')
        self.assertEqual(atom.use_deps, [
            UseDep('ssl'),
            UseDep('gnutls', prefix='-'),
            UseDep('http2', default='(+)', suffix='?'),
            UseDep('test', prefix='!', suffix='='),
        ])
        self.assertEqual(str(atom), 'net-misc/curl[ssl,-gnutls,http2(+)?,!test=]')

    def test_invalid(self):
        for token in ('dev-libs/foo-1.0', '>=dev-libs/foo', '~dev-libs/foo-1*', 'foo', 'dev-libs/foo[!ssl]',
                      'dev-libs/foo[-ssl?]', 'dev-libs/foo:0*'):
            with self.assertRaises(InvalidDependency, msg=token):
                DepAtom.parse(token)


class TestDependencies(unittest.TestCase):
    def test_entries(self):
        entries = parse_dependencies('>=dev-libs/openssl-1.1:0= ssl? ( net-misc/curl[ssl] ) '
                                     '|| ( app-a/b ( app-c/d app-e/f ) )')
        self.assertEqual(len(entries), 3)
        self.assertIsInstance(entries[0], DepAtom)
        self.assertEqual(entries[1], UseConditional('ssl', False, [DepAtom.parse('net-misc/curl[ssl]')]))
        self.assertEqual(entries[2], AnyOf([
            DepAtom('app-a', 'b'),
            Group([DepAtom('app-c', 'd'), DepAtom('app-e', 'f')]),
        ]))

    def test_render_round_trip(self):
        text = ('!!<sys-apps/foo-2 test? ( || ( dev-python/a[python_targets_python3_11(-)?] dev-python/b ) ) '
                'virtual/pkgconfig')
        entries = parse_dependencies(text)
        self.assertEqual(render_entries(entries), text)
        self.assertEqual(parse_dependencies(render_entries(entries)), entries)

    def test_empty(self):
        self.assertEqual(parse_dependencies(''), [])

    def test_invalid_atom_position(self):
        with self.assertRaises(InvalidDependency) as cm:
            parse_dependencies('app-a/b dev-libs/foo-1.0')
        self.assertEqual(cm.exception.column, 9)
        self.assertIn('dev-libs/foo-1.0', cm.exception.context)

    def test_unterminated_group(self):
        with self.assertRaises(InvalidDependency) as cm:
            parse_dependencies('ssl? ( dev-libs/openssl')
        self.assertEqual(cm.exception.label, 'unterminated group')


if __name__ == '__main__':
    unittest.main()
