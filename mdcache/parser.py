from lark import Lark, Transformer, UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from mdcache.objects import *

from mdcache.error import InvalidLicense, InvalidRequiredUse, InvalidRestrict, InvalidSrcUri, InvalidDependency

from .lexer import LICENSE_GRAMMAR, REQUIRED_USE_GRAMMAR, RESTRICT_GRAMMAR, SRC_URI_GRAMMAR, DEPEND_GRAMMAR


class ExpressionTransformer(Transformer):
    """Builds the parts every field grammar has in common, subclasses add their atoms and operators."""

    def start(self, args):
        return args

    def use_conditional(self, args):
        flag = args.pop(0).value[:-1]  # strip "?"
        negated = flag.startswith('!')
        if negated:
            flag = flag[1:]

        return UseConditional(flag, negated, args)

    def group(self, args):
        return Group(args)


class LicenseTransformer(ExpressionTransformer):
    def license(self, args):
        return License(args[0].value)

    def any_of(self, args):
        return AnyOf(args)


class RequiredUseTransformer(ExpressionTransformer):
    def flag(self, args):
        name = args[0].value
        if name.startswith('!'):
            return Flag(name[1:], negated=True)
        return Flag(name)

    def any_of(self, args):
        return AnyOf(args)

    def exactly_one(self, args):
        return ExactlyOne(args)

    def at_most_one(self, args):
        return AtMostOne(args)


class RestrictTransformer(ExpressionTransformer):
    def restriction(self, args):
        return Restriction(args[0].value)

    def group(self, args):
        # Bare groups carry no meaning in RESTRICT/PROPERTIES. A single entry is unwrapped, anything
        # else becomes an empty restriction, which is what existing tooling has always produced.
        if len(args) == 1:
            return args[0]
        return Restriction('')


class SrcUriTransformer(ExpressionTransformer):
    def uri(self, args):
        token = args.pop(0)
        url = token.value
        restriction = None

        for marker in UriRestriction:
            prefix = marker.value + '+'
            if url.startswith(prefix):
                restriction = marker
                url = url[len(prefix):]
                break

        if not url:
            raise TokenError('missing URI after {!r}'.format(token.value), token)

        target = args[0].value if args else None
        return SrcUri(url, target, restriction)


class DependTransformer(ExpressionTransformer):
    def atom(self, args):
        token = args[0]
        try:
            return DepAtom.parse(token.value)
        except InvalidDependency as e:
            raise TokenError(e.label, token) from e

    def any_of(self, args):
        return AnyOf(args)


class TokenError(Exception):
    """Raised by a transformer when a token matched its terminal but is still not valid."""

    def __init__(self, label, token):
        Exception.__init__(self, label)
        self.label = label
        self.token = token


# Group openers, by terminal name, for errors on a missing "(".
GROUP_LABELS = {
    'USE_FLAG': 'USE conditional group',
    '_ANY_OF': "'||' group",
    '_EXACTLY_ONE': "'^^' group",
    '_AT_MOST_ONE': "'??' group",
}


def describe_lark_error(e: UnexpectedInput) -> str:
    if isinstance(e, UnexpectedCharacters):
        return 'unexpected character {!r}'.format(e.char)

    if isinstance(e, UnexpectedToken):
        if e.token.type == '$END' and '_RPAR' in e.expected:
            return 'unterminated group'

        value_stack = getattr(e.state, 'value_stack', None)
        if e.expected == {'_LPAR'} and value_stack:
            return GROUP_LABELS.get(getattr(value_stack[-1], 'type', None), 'group')

        if e.token.type == '_RPAR':
            return "unmatched ')'"

        if e.token.type == '$END':
            return 'unexpected end of input'

        return 'unexpected {!r}'.format(e.token.value)

    return 'unexpected end of input'


def error_context(text, pos, span=40):
    before = text[max(pos - span, 0):pos].rsplit('\n', 1)[-1]
    after = text[pos:pos + span].split('\n', 1)[0]
    return before + after + '\n' + ' ' * len(before.expandtabs()) + '^\n'


class ExpressionParser:
    """One field grammar: a Lark LALR parser with its transformer applied inline.

    Instances hold no per-parse state, a single one may be shared between threads.
    """

    def __init__(self, grammar, transformer, error_class, debug=False):
        self.error_class = error_class
        self.lark = Lark(grammar, start='start', debug=debug, parser='lalr', lexer='contextual',
                         transformer=transformer)

    def parse(self, text: str) -> list:
        try:
            return self.lark.parse(text)
        except UnexpectedInput as e:
            line = getattr(e, 'line', None)
            column = getattr(e, 'column', None)
            raise self.error_class(describe_lark_error(e), text, line, column, e.get_context(text)) from e
        except TokenError as e:
            token = e.token
            raise self.error_class(e.label, text, token.line, token.column,
                                   error_context(text, token.start_pos)) from e


LICENSE_PARSER = ExpressionParser(LICENSE_GRAMMAR, LicenseTransformer(), InvalidLicense)
REQUIRED_USE_PARSER = ExpressionParser(REQUIRED_USE_GRAMMAR, RequiredUseTransformer(), InvalidRequiredUse)
RESTRICT_PARSER = ExpressionParser(RESTRICT_GRAMMAR, RestrictTransformer(), InvalidRestrict)
SRC_URI_PARSER = ExpressionParser(SRC_URI_GRAMMAR, SrcUriTransformer(), InvalidSrcUri)
DEPEND_PARSER = ExpressionParser(DEPEND_GRAMMAR, DependTransformer(), InvalidDependency)


def single_or_all(entries):
    if len(entries) == 1:
        return entries[0]
    return AllOf(entries)


def parse_license(data: str):
    """Parses a LICENSE value.

    A value with one top level entry gives that entry, anything else (including nothing) an AllOf.
    """
    return single_or_all(LICENSE_PARSER.parse(data))


def parse_required_use(data: str):
    return single_or_all(REQUIRED_USE_PARSER.parse(data))


def parse_restrict(data: str) -> list:
    """Parses a RESTRICT or PROPERTIES value into its list of entries."""
    return RESTRICT_PARSER.parse(data)


def parse_src_uri(data: str) -> list:
    return SRC_URI_PARSER.parse(data)


def parse_dependencies(data: str) -> list:
    return DEPEND_PARSER.parse(data)
