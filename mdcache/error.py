class MetadataError(Exception):
    pass


class InvalidEapi(MetadataError):
    def __init__(self, value):
        MetadataError.__init__(self, 'invalid EAPI: {}'.format(value))
        self.value = value


class InvalidKeyword(MetadataError):
    def __init__(self, value):
        MetadataError.__init__(self, 'invalid keyword: {}'.format(value))
        self.value = value


class InvalidIUse(MetadataError):
    def __init__(self, value):
        MetadataError.__init__(self, 'invalid IUSE entry: {}'.format(value))
        self.value = value


class InvalidPhase(MetadataError):
    def __init__(self, value):
        MetadataError.__init__(self, 'invalid phase: {}'.format(value))
        self.value = value


class InvalidCacheEntry(MetadataError):
    def __init__(self, line):
        MetadataError.__init__(self, 'invalid cache entry: {!r}'.format(line))
        self.line = line


class MissingField(MetadataError):
    def __init__(self, field):
        MetadataError.__init__(self, 'missing required field: {}'.format(field))
        self.field = field


class ExpressionError(MetadataError):
    """A field value that does not match its expression grammar.

    ``label`` names what went wrong (``'unterminated group'``, ``'USE conditional group'``, ...),
    ``line``/``column`` locate it inside ``text`` and ``context`` is a caret snippet pointing at it.
    """

    field = 'expression'

    def __init__(self, label, text=None, line=None, column=None, context=None):
        MetadataError.__init__(self, label)
        self.label = label
        self.text = text
        self.line = line
        self.column = column
        self.context = context

    def __str__(self):
        message = 'invalid {}: {}'.format(self.field, self.label)
        if self.line is not None:
            message += ' at line {}, column {}'.format(self.line, self.column)
        if self.context:
            message += '\n\n' + self.context
        return message


class InvalidLicense(ExpressionError):
    field = 'LICENSE'


class InvalidRequiredUse(ExpressionError):
    field = 'REQUIRED_USE'


class InvalidRestrict(ExpressionError):
    field = 'RESTRICT/PROPERTIES'


class InvalidSrcUri(ExpressionError):
    field = 'SRC_URI'


class InvalidDependency(ExpressionError):
    field = 'dependency specification'


class DependencyError(ExpressionError):
    """An ``InvalidDependency`` raised while reading one of the dependency class fields."""

    def __init__(self, key, cause):
        ExpressionError.__init__(self, cause.label, cause.text, cause.line, cause.column, cause.context)
        self.field = key
        self.cause = cause
