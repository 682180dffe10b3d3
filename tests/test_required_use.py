import unittest

from mdcache.error import InvalidRequiredUse
from mdcache.objects import Flag, AllOf, AnyOf, ExactlyOne, AtMostOne, Group, UseConditional, walk
from mdcache.parser import parse_required_use


class TestRequiredUse(unittest.TestCase):
    def test_flags(self):
        self.assertEqual(parse_required_use('ssl'), Flag('ssl'))
        self.assertEqual(parse_required_use('!ssl'), Flag('ssl', negated=True))
        self.assertEqual(parse_required_use('python_targets_python3_11 ssl'),
                         AllOf([Flag('python_targets_python3_11'), Flag('ssl')]))

    def test_operators(self):
        self.assertEqual(parse_required_use('|| ( a b )'), AnyOf([Flag('a'), Flag('b')]))
        self.assertEqual(parse_required_use('^^ ( a b )'), ExactlyOne([Flag('a'), Flag('b')]))
        self.assertEqual(parse_required_use('?? ( a !b )'), AtMostOne([Flag('a'), Flag('b', True)]))

    def test_nested(self):
        tree = parse_required_use('ssl? ( ^^ ( openssl gnutls ) ) !minimal? ( || ( X wayland ) )')
        self.assertEqual(tree, AllOf([
            UseConditional('ssl', False, [ExactlyOne([Flag('openssl'), Flag('gnutls')])]),
            UseConditional('minimal', True, [AnyOf([Flag('X'), Flag('wayland')])]),
        ]))

    def test_render(self):
        self.assertEqual(str(parse_required_use('??(a b)')), '?? ( a b )')
        self.assertEqual(str(parse_required_use('a? (  !b  )')), 'a? ( !b )')
        self.assertEqual(str(parse_required_use('|| ( ( a b ) c )')), '|| ( ( a b ) c )')

    def test_render_round_trip(self):
        for text in ('a', '!a b', '^^ ( a b c )', '|| ( ( a b ) c ) ?? ( d e )',
                     'test? ( !debug ) python_single_target_x? ( ^^ ( y z ) )'):
            tree = parse_required_use(text)
            self.assertEqual(parse_required_use(str(tree)), tree)

    def test_walk(self):
        tree = parse_required_use('a? ( ?? ( b c ) )')
        kinds = [type(node) for node in walk(tree)]
        self.assertEqual(kinds, [UseConditional, AtMostOne, Flag, Flag])

    def test_group(self):
        self.assertEqual(parse_required_use('( a b )'), Group([Flag('a'), Flag('b')]))

    def test_missing_group(self):
        for text, label in (('?? a', "'??' group"), ('^^ a', "'^^' group"), ('|| a', "'||' group"),
                            ('a? b', 'USE conditional group'), ('!a?', 'USE conditional group')):
            with self.assertRaises(InvalidRequiredUse) as cm:
                parse_required_use(text)
            self.assertEqual(cm.exception.label, label, text)

    def test_unterminated_group(self):
        with self.assertRaises(InvalidRequiredUse) as cm:
            parse_required_use('^^ ( a b')
        self.assertEqual(cm.exception.label, 'unterminated group')

    def test_invalid(self):
        for text in ('a.b', 'a@b', '|', '^ ( a )'):
            with self.assertRaises(InvalidRequiredUse):
                parse_required_use(text)


if __name__ == '__main__':
    unittest.main()
