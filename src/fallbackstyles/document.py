"""Pydantic schema of the persisted configuration document.

Keys are camelCase on disk. Unknown keys are kept on every model so that a
document written by a newer release survives a load/save cycle untouched.
Parsed handles and font URLs never appear here; they are re-derived from
the stored binaries.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from fallbackstyles.models import (
    DEFAULT_FALLBACK_FONT,
    FontScales,
    HeadingStyle,
    LineHeight,
    Provenance,
    Role,
    Style,
    Typeface,
    WeightAxis,
    coerce_override,
    override_to_plain,
)


DOCUMENT_VERSION = 1


class _DocumentModel(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class WeightAxisDocument(_DocumentModel):
    min: float = 100
    max: float = 900
    default: float = 400
    name: str = "Weight"


class AxesDocument(_DocumentModel):
    weight: WeightAxisDocument | None = None


class FontScalesDocument(_DocumentModel):
    active: float = 100
    fallback: float = 100


class FontDocument(_DocumentModel):
    """One registry entry."""

    id: str
    kind: Literal["primary", "fallback"] = Field(default="fallback", alias="type")
    name: str | None = None
    file_name: str | None = None
    axes: AxesDocument | None = None
    is_variable: bool = False
    static_weight: int = 400
    base_font_size: float | None = None
    scale: float | None = None
    line_height: float | Literal["auto"] | None = None
    letter_spacing: float | None = None
    weight_override: int | None = None
    ascent_override: float | None = None
    descent_override: float | None = None
    line_gap_override: float | None = None
    color: str | None = None
    hidden: bool = False
    is_clone: bool = False
    is_lang_specific: bool = False
    is_primary_override: bool = False
    cloned_from: str | None = None

    @field_validator(
        "base_font_size",
        "scale",
        "line_height",
        "letter_spacing",
        "weight_override",
        "ascent_override",
        "descent_override",
        "line_gap_override",
        mode="before",
    )
    @classmethod
    def _unset_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @property
    def provenance(self) -> Provenance:
        if self.is_primary_override:
            return Provenance.PRIMARY_OVERRIDE
        if self.is_clone:
            return Provenance.CLONE
        if self.is_lang_specific:
            return Provenance.LANGUAGE_SPECIFIC
        return Provenance.GENERAL

    @classmethod
    def from_typeface(cls, typeface: Typeface) -> FontDocument:
        axes = None
        if typeface.axes is not None:
            axis = typeface.axes
            axes = AxesDocument(
                weight=WeightAxisDocument(
                    min=axis.min, max=axis.max, default=axis.default, name=axis.name
                )
            )
        return cls(
            id=typeface.id,
            kind=typeface.role.value,
            name=typeface.name,
            file_name=typeface.file_name,
            axes=axes,
            is_variable=typeface.is_variable,
            static_weight=typeface.static_weight,
            base_font_size=typeface.base_font_size,
            scale=typeface.scale,
            line_height=typeface.line_height,
            letter_spacing=typeface.letter_spacing,
            weight_override=typeface.weight,
            ascent_override=typeface.ascent_override,
            descent_override=typeface.descent_override,
            line_gap_override=typeface.line_gap_override,
            color=typeface.color,
            hidden=typeface.hidden,
            is_clone=typeface.is_clone,
            is_lang_specific=typeface.is_lang_specific,
            is_primary_override=typeface.is_primary_override,
            cloned_from=typeface.cloned_from,
        )

    def to_typeface(self, role: Role) -> Typeface:
        axis = self.axes.weight if self.axes is not None else None
        provenance = self.provenance
        if role is Role.PRIMARY:
            provenance = Provenance.GENERAL
        return Typeface(
            id=self.id,
            role=role,
            provenance=provenance,
            name=self.name,
            file_name=self.file_name,
            axes=(
                WeightAxis(min=axis.min, max=axis.max, default=axis.default, name=axis.name)
                if axis is not None
                else None
            ),
            is_variable=self.is_variable,
            static_weight=self.static_weight,
            base_font_size=self.base_font_size,
            scale=self.scale,
            line_height=self.line_height,
            letter_spacing=self.letter_spacing,
            weight=self.weight_override,
            ascent_override=self.ascent_override,
            descent_override=self.descent_override,
            line_gap_override=self.line_gap_override,
            color=self.color,
            hidden=self.hidden,
            cloned_from=self.cloned_from,
        )


class FontStyleDocument(_DocumentModel):
    """One Style with its registry and override maps."""

    base_font_size: float = 60
    base_rem: float = 16
    font_scales: FontScalesDocument = Field(default_factory=FontScalesDocument)
    line_height: float | Literal["auto"] = 1.2
    letter_spacing: float = 0
    weight: int = 400
    fallback_line_height: float | Literal["auto"] | None = None
    fallback_letter_spacing: float | None = None
    fallback_font: str = DEFAULT_FALLBACK_FONT
    fonts: list[FontDocument] = Field(default_factory=list)
    primary_font_overrides: dict[str, str] = Field(default_factory=dict)
    fallback_font_overrides: dict[str, str | dict[str, str]] = Field(default_factory=dict)
    fallback_scale_overrides: dict[str, float] = Field(default_factory=dict)
    line_height_overrides: dict[str, float | Literal["auto"]] = Field(default_factory=dict)
    missing_color: str | None = None
    missing_bg_color: str | None = None

    @field_validator("fallback_line_height", "fallback_letter_spacing", mode="before")
    @classmethod
    def _unset_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @classmethod
    def from_style(cls, style: Style) -> FontStyleDocument:
        return cls(
            base_font_size=style.base_font_size,
            base_rem=style.base_rem,
            font_scales=FontScalesDocument(
                active=style.font_scales.active, fallback=style.font_scales.fallback
            ),
            line_height=style.line_height,
            letter_spacing=style.letter_spacing,
            weight=style.weight,
            fallback_line_height=style.fallback_line_height,
            fallback_letter_spacing=style.fallback_letter_spacing,
            fallback_font=style.fallback_font,
            fonts=[FontDocument.from_typeface(typeface) for typeface in style.typefaces],
            primary_font_overrides=dict(style.primary_overrides),
            fallback_font_overrides={
                language_id: override_to_plain(override)
                for language_id, override in style.fallback_overrides.items()
            },
            fallback_scale_overrides=dict(style.scale_overrides),
            line_height_overrides=dict(style.line_height_overrides),
            missing_color=style.missing_color,
            missing_bg_color=style.missing_bg_color,
        )

    def to_style(self, style_id: str) -> Style:
        typefaces = [
            font.to_typeface(Role.PRIMARY if index == 0 else Role.FALLBACK)
            for index, font in enumerate(self.fonts)
        ]
        fallback_overrides = {}
        for language_id, value in self.fallback_font_overrides.items():
            override = coerce_override(value)
            if override is not None:
                fallback_overrides[language_id] = override
        style = Style(
            id=style_id,
            base_font_size=self.base_font_size,
            base_rem=self.base_rem,
            font_scales=FontScales(
                active=self.font_scales.active, fallback=self.font_scales.fallback
            ),
            line_height=self.line_height,
            letter_spacing=self.letter_spacing,
            weight=self.weight,
            fallback_line_height=self.fallback_line_height,
            fallback_letter_spacing=self.fallback_letter_spacing,
            fallback_font=self.fallback_font,
            typefaces=typefaces,
            primary_overrides=dict(self.primary_font_overrides),
            fallback_overrides=fallback_overrides,
            scale_overrides=dict(self.fallback_scale_overrides),
            line_height_overrides=dict(self.line_height_overrides),
        )
        if self.missing_color:
            style.missing_color = self.missing_color
        if self.missing_bg_color:
            style.missing_bg_color = self.missing_bg_color
        return style


class HeaderStyleDocument(_DocumentModel):
    scale: float = 1.0
    line_height: float | Literal["auto"] = 1.2

    @classmethod
    def from_heading(cls, heading: HeadingStyle) -> HeaderStyleDocument:
        return cls(scale=heading.scale, line_height=heading.line_height)

    def to_heading(self) -> HeadingStyle:
        line_height: LineHeight = self.line_height
        return HeadingStyle(scale=self.scale, line_height=line_height)


class ConfigData(_DocumentModel):
    """Body of the configuration document."""

    active_font_style_id: str = "primary"
    font_styles: dict[str, FontStyleDocument] = Field(default_factory=dict)
    header_styles: dict[str, HeaderStyleDocument] | None = None
    header_font_style_map: dict[str, str] = Field(default_factory=dict)
    text_overrides: dict[str, str] = Field(default_factory=dict)
    visible_language_ids: list[str] = Field(default_factory=list)


class ConfigMetadata(_DocumentModel):
    version: int = DOCUMENT_VERSION
    exported_at: str | None = None
    app_name: str = "fallbackstyles"


class ConfigDocument(_DocumentModel):
    metadata: ConfigMetadata = Field(default_factory=ConfigMetadata)
    data: ConfigData = Field(default_factory=ConfigData)


__all__ = [
    "DOCUMENT_VERSION",
    "AxesDocument",
    "ConfigData",
    "ConfigDocument",
    "ConfigMetadata",
    "FontDocument",
    "FontScalesDocument",
    "FontStyleDocument",
    "HeaderStyleDocument",
    "WeightAxisDocument",
]
