"""Dictionary entry references and the add payloads derived from them."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from wortschatz.schemas.library import FavoriteAddRequest
from wortschatz.utils.text import clean_text

__all__ = ["DictionaryEntryRef", "Sense", "build_add_payloads"]


class Sense(BaseModel):
    """One meaning of a headword; only its gloss travels with a favorite."""

    model_config = ConfigDict(frozen=True)

    gloss: str = ""


def _coerce_sense(item: object, position: int) -> Sense:
    if isinstance(item, Sense):
        return item
    if isinstance(item, str):
        return Sense(gloss=item.strip())
    if isinstance(item, dict):
        gloss = item.get("gloss")
        return Sense(gloss=gloss.strip() if isinstance(gloss, str) else "")
    raise ValueError(f"senses[{position}] must be a string or an object with a gloss")


class DictionaryEntryRef(BaseModel):
    """A headword as handed over by the dictionary view.

    ``senses`` is normalized on construction into an ordered list of
    :class:`Sense`; a bare string becomes a single sense and ``None`` becomes
    an empty list. Any other shape is rejected here so the toggle engine only
    ever sees the normalized form.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    headword: str = ""
    canonical_pos: str = Field("", validation_alias=AliasChoices("canonical_pos", "canonicalPos"))
    sense_index: int | None = Field(
        None, ge=0, validation_alias=AliasChoices("sense_index", "senseIndex")
    )
    senses: tuple[Sense, ...] = Field(
        default=(),
        validation_alias=AliasChoices("senses", "headword_senses", "headwordSenses"),
    )
    headword_gloss: str = Field(
        "", validation_alias=AliasChoices("headword_gloss", "headwordGloss")
    )
    headword_gloss_lang: str | None = Field(
        None, validation_alias=AliasChoices("headword_gloss_lang", "headwordGlossLang")
    )

    @field_validator("headword", "canonical_pos", "headword_gloss", mode="before")
    @classmethod
    def _trim(cls, value: object) -> str:
        return clean_text(value)

    @field_validator("headword_gloss_lang", mode="before")
    @classmethod
    def _trim_lang(cls, value: object) -> str | None:
        return clean_text(value) or None

    @field_validator("senses", mode="before")
    @classmethod
    def _normalize_senses(cls, value: object) -> tuple[Sense, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            return (Sense(gloss=value.strip()),) if value.strip() else ()
        if isinstance(value, (list, tuple)):
            return tuple(_coerce_sense(item, position) for position, item in enumerate(value))
        raise ValueError("senses must be a string, a list of senses or null")


def build_add_payloads(
    entry: DictionaryEntryRef,
    *,
    category_id: int | None,
    default_gloss_lang: str,
) -> list[FavoriteAddRequest]:
    """Expand ``entry`` into one upsert payload per sense.

    With senses present, the sense index of each payload is its position in
    ``entry.senses``. Without senses a single payload uses
    ``entry.sense_index`` (0 when unset).
    """

    gloss_lang = entry.headword_gloss_lang or default_gloss_lang

    if entry.senses:
        return [
            FavoriteAddRequest(
                headword=entry.headword,
                canonical_pos=entry.canonical_pos,
                sense_index=position,
                headword_gloss=sense.gloss or entry.headword_gloss,
                headword_gloss_lang=gloss_lang,
                category_id=category_id,
            )
            for position, sense in enumerate(entry.senses)
        ]

    return [
        FavoriteAddRequest(
            headword=entry.headword,
            canonical_pos=entry.canonical_pos,
            sense_index=entry.sense_index or 0,
            headword_gloss=entry.headword_gloss,
            headword_gloss_lang=gloss_lang,
            category_id=category_id,
        )
    ]
