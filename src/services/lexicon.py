"""Static keyword tables used by planning, scoring and validation.

The matching code only ever reads these tables; swapping their contents does
not change any algorithm.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Tuple

# -- Query planning ---------------------------------------------------------

# (family, keywords, languages), checked in order after script detection
KEYWORD_FAMILIES: List[Tuple[str, Tuple[str, ...], Tuple[str, ...]]] = [
    ("french", ("château", "musée", "cathédrale", "église"), ("fr", "en")),
    ("spanish", ("museo", "catedral", "plaza", "iglesia"), ("es", "en")),
    ("italian", ("cattedrale", "piazza", "chiesa"), ("it", "en")),
    ("portuguese", ("museu", "praça", "igreja"), ("pt", "en")),
    ("russian", ("музей", "собор", "площадь", "церковь"), ("ru", "en")),
    (
        "english",
        (
            "museum", "cathedral", "church", "palace", "castle", "tower", "bridge", "square",
            "gallery", "center", "centre", "park", "garden", "beach", "temple", "shrine",
        ),
        ("en", "zh", "fr", "de"),
    ),
]

SCRIPT_LANGUAGES: Dict[str, Tuple[str, ...]] = {
    "han": ("zh", "en", "ja"),
    "kana": ("ja", "en", "zh"),
    "hangul": ("ko", "en", "zh"),
    "arabic": ("ar", "en"),
}

DEFAULT_LANGUAGES: Tuple[str, ...] = ("en", "zh", "fr")

LANGUAGE_ALIASES: Dict[str, str] = {"zh-hk": "zh", "zh-tw": "zh", "zh-cn": "zh"}

STRIPPABLE_SUFFIXES: Tuple[str, ...] = (
    "gallery", "museum", "theatre", "theater", "center", "centre",
    "building", "tower", "square", "park", "garden", "beach", "bay",
    "church", "cathedral", "temple", "mosque", "synagogue",
    "hotel", "restaurant", "cafe", "bar", "club", "market",
    "station", "airport", "bridge", "street", "road", "avenue",
)

ABBREVIATIONS: Dict[str, str] = {
    "st": "saint",
    "mt": "mount",
    "dr": "doctor",
    "ave": "avenue",
    "rd": "road",
    "sq": "square",
}

ARTICLE_PREFIX = "the "

# -- Semantic dimension -----------------------------------------------------

SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "temple": ("shrine", "monastery", "pagoda", "sanctuary", "cathedral", "church"),
    "museum": ("gallery", "exhibition", "collection", "center", "centre"),
    "beach": ("shore", "coast", "bay", "waterfront", "seaside"),
    "square": ("plaza", "piazza", "place", "courtyard", "park"),
    "station": ("terminal", "depot", "stop", "hub"),
    "market": ("bazaar", "marketplace", "mart", "fair"),
    "tower": ("spire", "minaret", "campanile", "steeple"),
    "bridge": ("span", "crossing", "viaduct", "overpass"),
    "garden": ("park", "botanical", "arboretum", "conservatory"),
    "palace": ("castle", "mansion", "residence", "manor"),
    "library": ("archive", "repository", "collection", "center"),
    "hospital": ("clinic", "medical", "health", "care"),
    "university": ("college", "school", "academy", "institute"),
    "restaurant": ("cafe", "bistro", "eatery", "dining", "kitchen"),
    "hotel": ("inn", "lodge", "resort", "accommodation", "guest"),
    "synagogue": ("temple", "shul", "congregation", "beth"),
    "mosque": ("masjid", "islamic", "muslim", "prayer"),
    "church": ("cathedral", "chapel", "basilica", "abbey"),
    "island": ("isle", "archipelago", "atoll", "key"),
    "mountain": ("peak", "summit", "hill", "mount", "ridge"),
    "lake": ("pond", "reservoir", "lagoon", "loch"),
    "river": ("stream", "creek", "waterway", "channel"),
    "forest": ("woods", "woodland", "jungle", "grove"),
    "desert": ("dunes", "sahara", "wilderness", "badlands"),
}

# Han-script families; a match on both sides earns the script bonus
CROSS_SCRIPT_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "寺": ("寺廟", "廟", "庵", "觀", "院", "temple"),
    "博物館": ("展覽館", "美術館", "文物館", "紀念館", "博物馆", "museum"),
    "公園": ("花園", "園林", "綠地", "公园", "park"),
    "海灘": ("沙灘", "海岸", "海邊", "濱海", "海滩", "beach"),
    "廣場": ("广场", "plaza", "square"),
    "車站": ("站", "车站", "terminal", "station"),
    "中心": ("center", "centre", "hub"),
    "圖書館": ("書館", "閱覽室", "文獻館", "图书馆", "library"),
    "酒店": ("飯店", "旅館", "賓館", "hotel"),
    "餐廳": ("食堂", "茶樓", "酒樓", "餐厅", "restaurant"),
    "橋": ("桥", "大橋", "bridge"),
    "塔": ("tower",),
}

# -- Type dimension ---------------------------------------------------------

CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "religious": (
        "temple", "church", "mosque", "synagogue", "cathedral", "shrine", "monastery",
        "abbey", "basilica", "chapel", "寺", "廟", "教堂", "神社",
    ),
    "cultural": ("museum", "gallery", "theater", "theatre", "opera", "concert", "cultural", "art", "exhibition", "博物館", "美術館"),
    "recreational": ("park", "garden", "zoo", "aquarium", "amusement", "playground", "recreation", "公園", "花園"),
    "natural": ("beach", "lake", "mountain", "forest", "river", "waterfall", "cave", "island", "bay", "海灘", "山", "湖"),
    "transportation": ("station", "airport", "port", "terminal", "depot", "hub", "車站", "機場"),
    "commercial": ("market", "mall", "shopping", "store", "restaurant", "hotel", "cafe", "市場", "酒店"),
    "historical": ("castle", "palace", "fort", "monument", "memorial", "historic", "ancient", "heritage", "城堡", "宮"),
    "educational": ("university", "college", "school", "library", "institute", "academy", "大學", "圖書館"),
    "medical": ("hospital", "clinic", "medical", "health", "pharmacy", "醫院"),
    "government": ("city hall", "courthouse", "embassy", "consulate", "government", "municipal"),
    "sports": ("stadium", "arena", "gym", "sports", "field", "court", "track", "體育館"),
    "entertainment": ("cinema", "club", "bar", "entertainment", "nightlife", "戲院"),
}

RELATED_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "religious": ("historical", "cultural"),
    "cultural": ("historical", "educational"),
    "recreational": ("natural", "entertainment"),
    "natural": ("recreational",),
    "historical": ("cultural", "religious"),
    "educational": ("cultural",),
}

# Bonus added to the geographic score by candidate title keyword, first hit wins
DISTANCE_TOLERANCE: List[Tuple[Tuple[str, ...], float]] = [
    (("airport", "station", "terminal"), 0.05),
    (("museum", "gallery"), 0.03),
    (("park", "beach"), 0.02),
    (("restaurant", "shop", "store", "mall"), 0.01),
]

# -- Weighting cues ---------------------------------------------------------

PROXIMITY_CUES: Tuple[str, ...] = ("near", "nearby")
TYPE_CUES: Tuple[str, ...] = ("type", "kind")
EXACT_CUES: Tuple[str, ...] = ("exact", "specific")

# -- Address validation -----------------------------------------------------

ADDRESS_PATTERNS: Tuple[str, ...] = (
    "street", "road", "avenue", "lane", "drive", "boulevard", "way", "place", "square", "circle",
    "路", "街", "道", "巷", "弄", "大道", "廣場", "區", "市", "縣", "省", "州", "國",
    "rue", "cours", "quai",
    "straße", "strasse", "gasse", "platz", "weg", "allee",
    "via", "strada", "piazza", "corso", "viale",
    "calle", "avenida", "plaza", "paseo", "carrera",
    "rua", "praça", "largo", "travessa",
    "улица", "проспект", "площадь", "переулок",
    "通り", "丁目", "番地", "区", "町", "村",
    "로", "길", "동", "구", "시", "군", "도",
)

IMPORTANT_LOCATION_TOKENS: Tuple[str, ...] = (
    "區", "路", "街", "道", "里", "市", "縣", "省", "州",
    "village", "road", "street", "avenue", "district", "area", "city", "town", "county",
    "state", "province", "region",
    "rue", "boulevard", "place", "quartier", "ville",
    "straße", "strasse", "platz", "stadt", "bezirk", "gasse",
    "via", "piazza", "corso", "città", "quartiere", "zona",
    "calle", "avenida", "plaza", "ciudad", "barrio",
    "通り", "丁目", "番地", "区", "町",
    "로", "길", "동", "구", "시", "군",
)

LOCATION_STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "the", "and", "or", "of", "in", "at", "on", "to", "for", "with", "by", "from", "about",
        "is", "was", "a", "an", "it", "its", "as", "be",
        "是", "的", "在", "和", "或", "與", "及", "等", "有", "無", "不", "也", "都", "很", "非常",
        "le", "la", "les", "de", "du", "des", "et", "ou", "dans", "sur", "pour", "avec", "par",
        "der", "die", "das", "und", "oder", "an", "auf", "für", "mit", "von", "zu",
        "il", "gli", "e", "o", "su", "per", "con", "da", "di",
        "el", "los", "las", "y", "en", "por", "para", "desde",
        "を", "は", "が", "に", "で", "と", "の", "へ", "から", "まで", "も", "や", "か",
        "을", "를", "이", "가", "에", "에서", "와", "과", "의", "으로", "부터", "까지",
    }
)

LOCATION_SEPARATORS = " ,-./\\()[]{}|;:\"'\n\t"


def _build_synonym_index(table: Dict[str, Iterable[str]]) -> Dict[str, FrozenSet[str]]:
    groups: Dict[str, set] = {}
    for head, members in table.items():
        group = {head, *members}
        for word in group:
            groups.setdefault(word, set()).update(group)
    return {word: frozenset(group) for word, group in groups.items()}


SYNONYM_INDEX: Dict[str, FrozenSet[str]] = _build_synonym_index(SYNONYMS)
