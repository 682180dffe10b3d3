# Every field grammar is a whitespace separated list of entries where an entry is an atom, a bare
# "( ... )" group, a "[!]flag? ( ... )" USE conditional group or, depending on the field, an
# operator group such as "|| ( ... )". The shared part lives in EXPRESSION_GRAMMAR, each field
# fills in its own atoms and operators.

EXPRESSION_GRAMMAR = r'''start: _entry*

_entry: {entries}

use_conditional: USE_FLAG _LPAR _entry* _RPAR
group: _LPAR _entry* _RPAR

{rules}

USE_FLAG.2: /!?[{flag_chars}]+\?/

_LPAR: "("
_RPAR: ")"

{terminals}

%ignore WHITESPACE
WHITESPACE: /[ \t\r\n]+/
'''

FLAG_CHARS = r'A-Za-z0-9_+\-'


def expression_grammar(entries, rules='', terminals='', flag_chars=FLAG_CHARS):
    return EXPRESSION_GRAMMAR.format(entries=' | '.join(entries), rules=rules, terminals=terminals,
                                     flag_chars=flag_chars)


LICENSE_GRAMMAR = expression_grammar(
    ['license', 'any_of', 'use_conditional', 'group'],
    rules=r'''
license: LICENSE_NAME
any_of: _ANY_OF _LPAR _entry* _RPAR
''',
    terminals=r'''
_ANY_OF: "||"
LICENSE_NAME: /[A-Za-z0-9_][A-Za-z0-9_.+\-]*/
''',
    flag_chars=FLAG_CHARS + '@',
)


REQUIRED_USE_GRAMMAR = expression_grammar(
    ['flag', 'any_of', 'exactly_one', 'at_most_one', 'use_conditional', 'group'],
    rules=r'''
flag: FLAG
any_of: _ANY_OF _LPAR _entry* _RPAR
exactly_one: _EXACTLY_ONE _LPAR _entry* _RPAR
at_most_one: _AT_MOST_ONE _LPAR _entry* _RPAR
''',
    terminals=r'''
_ANY_OF: "||"
_EXACTLY_ONE: "^^"
_AT_MOST_ONE: "??"
FLAG: /!?[A-Za-z0-9_+\-]+/
''',
)


# RESTRICT and PROPERTIES share this grammar.
RESTRICT_GRAMMAR = expression_grammar(
    ['restriction', 'use_conditional', 'group'],
    rules=r'''
restriction: RESTRICTION
''',
    terminals=r'''
RESTRICTION: /[A-Za-z0-9_.+\-]+/
''',
)


# "fetch+" / "mirror+" prefixes are URI characters, the transformer splits them off.
SRC_URI_GRAMMAR = expression_grammar(
    ['uri', 'use_conditional', 'group'],
    rules=r'''
uri: URI (_ARROW FILENAME)?
''',
    terminals=r'''
_ARROW.3: "->"
URI: /[A-Za-z0-9:\/.\-_~$&'*+,;=%@#?]+/
FILENAME: /[A-Za-z0-9.\-_+]+/
''',
)


# Package atoms are matched whole here, including a "[use,deps(+)]" suffix which may contain
# parentheses. Their inner structure is checked by objects.DepAtom.
DEPEND_GRAMMAR = expression_grammar(
    ['atom', 'any_of', 'use_conditional', 'group'],
    rules=r'''
atom: ATOM
any_of: _ANY_OF _LPAR _entry* _RPAR
''',
    terminals=r'''
_ANY_OF: "||"
ATOM: /[!<>=~A-Za-z0-9_][^\s()\[\]]*(?:\[[^\]\s]*\])?/
''',
)
