class PdfMergerError(Exception):
    pass


class ValidationError(PdfMergerError):
    pass


class InsufficientInputError(ValidationError):
    pass


class MergeInProgressError(ValidationError):
    pass


class ParsingError(PdfMergerError):
    pass


class LoadError(ParsingError):
    pass


class FileIOError(PdfMergerError):
    pass


class ResourceLeakError(PdfMergerError):
    pass
