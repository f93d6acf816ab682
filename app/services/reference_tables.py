"""Static crop / soil reference tables and locale-insensitive key lookup.

Four read-only mappings drive schedule generation:

* ``CROP_PROFILES``        crop → water bounds (L/m²/day) + climate optima
* ``SOIL_MULTIPLIERS``     soil → multiplicative water adjustment
* ``IRRIGATION_INTERVALS`` crop → days between irrigations
* ``BASE_WATER_NEEDS``     crop → flat daily need used by the fallback tier

All tables are keyed by canonical English names.  Display names arrive in
whatever locale the user typed (``"Domates"``, ``"BUĞDAY "``, ``"Kumlu"``),
so every lookup goes through :func:`normalize_key` and the alias table
before touching a mapping.  Lookups never fail: a miss returns the
documented default.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

DEFAULT_CROP = "wheat"
DEFAULT_SOIL_MULTIPLIER = 1.0
DEFAULT_INTERVAL_DAYS = 3
DEFAULT_BASE_WATER_NEED = 5.0

SANDY = "sandy"
CLAY = "clay"


@dataclass(frozen=True, slots=True)
class CropProfile:
	water_min: float
	water_max: float
	temp_optimal: float
	temp_min: float
	temp_max: float
	humidity_optimal: float


# ── Key normalization ───────────────────────────────────────────────────────

_WHITESPACE = re.compile(r"\s+")
# Letters that NFKD does not decompose into base + combining mark.
_LETTER_FOLDS = str.maketrans({"ı": "i", "ø": "o", "ł": "l", "ß": "ss", "æ": "ae", "œ": "oe"})


def normalize_key(value: object) -> str:
	"""Canonicalize a crop/soil display name into a lookup key.

	Total (``None`` maps to ``""``) and idempotent.
	"""
	if value is None:
		return ""
	text = str(value)
	# casefold and NFKD can each expose input for the other, so fold to a fixed point
	while True:
		folded = _fold_once(text)
		if folded == text:
			return folded
		text = folded


def _fold_once(text: str) -> str:
	text = _strip_marks(text).translate(_LETTER_FOLDS).casefold()
	return _WHITESPACE.sub(" ", _strip_marks(text)).strip()


def _strip_marks(text: str) -> str:
	decomposed = unicodedata.normalize("NFKD", text)
	return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _normalized(table: Mapping[str, str]) -> dict[str, str]:
	return {normalize_key(key): value for key, value in table.items()}


# ── Tables ──────────────────────────────────────────────────────────────────

CROP_PROFILES: Mapping[str, CropProfile] = MappingProxyType(
	{
		"wheat": CropProfile(3, 5, 20, 0, 30, 45),
		"barley": CropProfile(3, 5, 18, 0, 28, 45),
		"rye": CropProfile(2.5, 4.5, 18, -5, 28, 40),
		"lentil": CropProfile(2.5, 4, 18, 5, 28, 40),
		"chickpea": CropProfile(2, 3.5, 20, 5, 32, 35),
		"tomato": CropProfile(5, 8, 25, 15, 35, 60),
		"pepper": CropProfile(4.5, 7, 25, 15, 35, 60),
		"eggplant": CropProfile(5, 8, 26, 18, 35, 65),
		"cucumber": CropProfile(5, 7, 24, 18, 32, 65),
		"squash": CropProfile(4.5, 6.5, 23, 15, 32, 60),
		"potato": CropProfile(4, 6, 20, 10, 28, 50),
		"onion": CropProfile(3, 5, 18, 8, 28, 50),
		"garlic": CropProfile(2.5, 4, 18, 5, 25, 45),
		"carrot": CropProfile(3.5, 5, 18, 8, 28, 50),
		"cabbage": CropProfile(3.5, 5.5, 18, 8, 28, 55),
		"lettuce": CropProfile(3, 5, 16, 5, 24, 55),
		"spinach": CropProfile(2.5, 4, 15, 5, 22, 50),
		"apple": CropProfile(2.5, 4.5, 18, 5, 28, 50),
		"pear": CropProfile(3, 5, 19, 8, 28, 50),
		"strawberry": CropProfile(4, 6, 18, 8, 26, 60),
		"cherry": CropProfile(2, 4, 20, 10, 28, 45),
		"grape": CropProfile(2, 4.5, 20, 10, 30, 40),
		"peach": CropProfile(3, 5, 22, 12, 32, 45),
		"apricot": CropProfile(2.5, 4.5, 21, 10, 30, 40),
		"plum": CropProfile(3, 5, 20, 10, 28, 45),
		"watermelon": CropProfile(5, 7.5, 26, 18, 35, 50),
		"melon": CropProfile(4.5, 7, 25, 18, 32, 50),
		"sunflower": CropProfile(3.5, 5.5, 22, 10, 32, 45),
		"canola": CropProfile(2.5, 4, 18, 5, 28, 45),
		"sesame": CropProfile(3, 5, 26, 18, 35, 40),
		"cotton": CropProfile(6, 8, 26, 18, 38, 50),
		"fiber crops": CropProfile(4, 6, 22, 12, 32, 45),
		"corn": CropProfile(5, 7, 24, 15, 32, 55),
		"olive": CropProfile(3.5, 6.5, 21, 10, 32, 35),
		"pomegranate": CropProfile(2, 4, 23, 12, 32, 40),
		"fig": CropProfile(2, 3.5, 22, 12, 32, 35),
		"tea": CropProfile(5, 8, 20, 10, 28, 70),
		"coffee": CropProfile(4, 7, 21, 15, 28, 65),
		"flowers": CropProfile(2.5, 4, 18, 8, 28, 50),
		"hay": CropProfile(2, 3.5, 18, 5, 28, 45),
	}
)

SOIL_MULTIPLIERS: Mapping[str, float] = MappingProxyType(
	{
		"sandy": 1.3,
		"clay": 0.8,
		"loam": 1.0,
		"silty": 0.85,
		"gravelly": 1.4,
	}
)

IRRIGATION_INTERVALS: Mapping[str, int] = MappingProxyType(
	{
		"wheat": 4, "barley": 4, "rye": 4, "lentil": 3, "chickpea": 3,
		"tomato": 2, "pepper": 2, "eggplant": 2, "cucumber": 1, "squash": 2,
		"cabbage": 3, "lettuce": 2, "spinach": 2, "potato": 3, "onion": 3,
		"garlic": 4, "carrot": 2,
		"apple": 3, "pear": 3, "strawberry": 2, "cherry": 3, "grape": 4,
		"peach": 3, "apricot": 3, "plum": 3, "watermelon": 2, "melon": 2,
		"sunflower": 4, "canola": 4, "sesame": 3,
		"cotton": 3, "fiber crops": 3,
		"corn": 2, "olive": 7, "pomegranate": 4, "fig": 5, "tea": 3, "coffee": 3,
		"flowers": 2, "hay": 4,
	}
)

BASE_WATER_NEEDS: Mapping[str, float] = MappingProxyType(
	{
		"wheat": 4, "barley": 3.5, "rye": 3.5, "lentil": 3, "chickpea": 2.5,
		"tomato": 6, "pepper": 5.5, "eggplant": 6.5, "cucumber": 6, "squash": 5.5,
		"potato": 5, "onion": 4, "garlic": 3, "carrot": 4, "cabbage": 4.5,
		"lettuce": 4, "spinach": 3,
		"apple": 3.5, "pear": 4, "strawberry": 5, "cherry": 3, "grape": 3,
		"peach": 4, "apricot": 3.5, "plum": 4, "watermelon": 6, "melon": 5.5,
		"sunflower": 4.5, "canola": 3.5, "sesame": 4,
		"cotton": 7, "fiber crops": 5,
		"corn": 6, "olive": 2.5, "pomegranate": 3, "fig": 2.5,
		"tea": 6.5, "coffee": 5.5, "flowers": 3.5, "hay": 2.5,
	}
)

# Turkish display names used by the mobile client.
_ALIASES: Mapping[str, str] = MappingProxyType(
	_normalized(
		{
			"buğday": "wheat", "arpa": "barley", "çavdar": "rye", "mercimek": "lentil",
			"nohut": "chickpea", "domates": "tomato", "biber": "pepper",
			"patlıcan": "eggplant", "salatalık": "cucumber", "kabak": "squash",
			"patates": "potato", "soğan": "onion", "sarımsak": "garlic", "havuç": "carrot",
			"lahana": "cabbage", "marul": "lettuce", "ıspanak": "spinach",
			"elma": "apple", "armut": "pear", "çilek": "strawberry", "kiraz": "cherry",
			"üzüm": "grape", "şeftali": "peach", "kayısı": "apricot", "erik": "plum",
			"karpuz": "watermelon", "kavun": "melon", "ayçiçeği": "sunflower",
			"kanola": "canola", "susam": "sesame", "pamuk": "cotton",
			"iplik bitkileri": "fiber crops", "mısır": "corn", "zeytin": "olive",
			"nar": "pomegranate", "incir": "fig", "çay": "tea", "kahve": "coffee",
			"çiçek": "flowers", "ot (saman)": "hay", "maize": "corn",
			"kumlu": "sandy", "killi": "clay", "tınlı": "loam", "balçık": "silty",
			"çakıllı": "gravelly", "sand": "sandy", "clayey": "clay", "loamy": "loam",
		}
	)
)


def resolve_key(name: object) -> str:
	"""Normalize ``name`` and map localized aliases onto canonical keys."""
	key = normalize_key(name)
	return _ALIASES.get(key, key)


# ── Lookups ─────────────────────────────────────────────────────────────────


def crop_profile(crop_type: object) -> CropProfile:
	return CROP_PROFILES.get(resolve_key(crop_type), CROP_PROFILES[DEFAULT_CROP])


def soil_multiplier(soil_type: object) -> float:
	return SOIL_MULTIPLIERS.get(resolve_key(soil_type), DEFAULT_SOIL_MULTIPLIER)


def irrigation_interval(crop_type: object) -> int:
	return IRRIGATION_INTERVALS.get(resolve_key(crop_type), DEFAULT_INTERVAL_DAYS)


def base_water_need(crop_type: object) -> float:
	return float(BASE_WATER_NEEDS.get(resolve_key(crop_type), DEFAULT_BASE_WATER_NEED))
