class PaletteError(Exception):
    """Base class for every failure raised by palette_profile."""


class InputEmptyError(PaletteError, ValueError):
    """The image yielded no colors, or none survived frequency filtering."""

    def __init__(self, message: str = "no usable colors found"):
        super().__init__(message)


class SettingsError(PaletteError, ValueError):
    """Configuration is malformed or internally inconsistent."""


class ImageLoadError(PaletteError):
    def __init__(self, path, operation: str, err: Exception):
        self.path = path
        self.operation = operation
        self.err = err
        super().__init__(f"failed to {operation} {path}: {err}")


class ImageFormatError(PaletteError):
    def __init__(self, path, extension: str, supported):
        self.path = path
        self.extension = extension
        self.supported = list(supported)
        if not extension:
            msg = f"no file extension found for {path}: supported formats are {self.supported}"
        else:
            msg = (
                f"unsupported format {extension} for file {path}: "
                f"supported formats are {self.supported}"
            )
        super().__init__(msg)


class ImageDimensionError(PaletteError):
    def __init__(self, width: int, height: int, max_width: int, max_height: int):
        self.width = width
        self.height = height
        self.max_width = max_width
        self.max_height = max_height
        super().__init__(
            f"image dimensions {width}x{height} exceed maximum {max_width}x{max_height}"
        )
