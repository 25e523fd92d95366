from .categories import Category, CategoryCharacteristics, CategoryTable, ThemeMode
from .errors import InputEmptyError, PaletteError, SettingsError
from .loader import load_image
from .profile import ColorProfile, process_image, profile_from_sample
from .saliency import ImageCharacteristics, ImageType, analyze_image
from .selection import (
    CategoryAssignment,
    ColorCandidate,
    RoleHeuristicStrategy,
    ScoredCategoryStrategy,
)
from .settings import Settings, default_settings, load_settings

__all__ = [
    "Category",
    "CategoryAssignment",
    "CategoryCharacteristics",
    "CategoryTable",
    "ColorCandidate",
    "ColorProfile",
    "ImageCharacteristics",
    "ImageType",
    "InputEmptyError",
    "PaletteError",
    "RoleHeuristicStrategy",
    "ScoredCategoryStrategy",
    "Settings",
    "SettingsError",
    "ThemeMode",
    "analyze_image",
    "default_settings",
    "load_image",
    "load_settings",
    "process_image",
    "profile_from_sample",
]
