"""Badge catalog - static, versioned badge definitions and lookup helpers.

Badge ids are permanent: a retired badge keeps its id reserved and a new
badge always gets a fresh one, because awarded rows reference ids directly.
"""

from dataclasses import dataclass
from enum import Enum


CATALOG_VERSION = 2


class BadgeRarity(str, Enum):
    """Badge rarity levels, declared from least to most rare."""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return list(BadgeRarity).index(self)


class BadgeCategory(str, Enum):
    """Badge categories."""
    FIRST_STEPS = "first_steps"
    CREATIVITY = "creativity"
    EXPLORER = "explorer"
    CONSISTENCY = "consistency"
    SPECIAL = "special"
    SECRET = "secret"
    COLORING_MASTER = "coloring_master"
    COLOR_EXPLORER = "color_explorer"
    BRUSH_MASTER = "brush_master"
    SMART_ARTIST = "smart_artist"
    COLORING_STREAK = "coloring_streak"
    DEDICATION = "dedication"
    SESSION = "session"
    PERSISTENCE = "persistence"


class RequirementKind(str, Enum):
    """How a badge requirement is compared against user statistics."""
    TOTAL_ANALYSES = "total_analyses"
    TOTAL_STORIES = "total_stories"
    TOTAL_COLORINGS = "total_colorings"
    CONSECUTIVE_DAYS = "consecutive_days"
    UNIQUE_TEST_TYPES = "unique_test_types"
    SPECIAL_DAY = "special_day"
    TIME_OF_DAY = "time_of_day"
    PROFILE_COMPLETE = "profile_complete"
    FIRST_CHILD = "first_child"
    MULTIPLE_CHILDREN = "multiple_children"
    COMPLETED_COLORINGS = "completed_colorings"
    COLORS_USED_TOTAL = "colors_used_total"
    COLORS_USED_SINGLE = "colors_used_single"
    BRUSH_TYPES_USED = "brush_types_used"
    PREMIUM_BRUSHES_USED = "premium_brushes_used"
    AI_SUGGESTIONS_USED = "ai_suggestions_used"
    HARMONY_COLORS_USED = "harmony_colors_used"
    REFERENCE_IMAGES_USED = "reference_images_used"
    COLORING_STREAK = "coloring_streak"
    COLORING_TIME_TOTAL = "coloring_time_total"
    QUICK_COLORING = "quick_coloring"
    MARATHON_COLORING = "marathon_coloring"
    UNDO_AND_CONTINUE = "undo_and_continue"
    COLORING_TIME_OF_DAY = "coloring_time_of_day"


# Kinds that depend on *when* an action happens; never evaluated from totals
CALENDAR_KINDS = frozenset({
    RequirementKind.SPECIAL_DAY.value,
    RequirementKind.TIME_OF_DAY.value,
    RequirementKind.COLORING_TIME_OF_DAY.value,
})

# Kinds satisfied by a boolean flag rather than a count
FLAG_KINDS = frozenset({
    RequirementKind.PROFILE_COMPLETE.value,
})


@dataclass(frozen=True)
class BadgeRequirement:
    """Tagged requirement: ``kind`` selects the rule, ``threshold`` is its payload.

    ``kind`` stays a plain string so definitions shipped ahead of the code
    that understands them still load (and simply never unlock).
    """

    kind: str
    threshold: int | str

    @property
    def is_threshold(self) -> bool:
        return is_threshold_kind(self.kind) and isinstance(self.threshold, int)


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    icon: str
    category: BadgeCategory
    rarity: BadgeRarity
    requirement: BadgeRequirement
    is_secret: bool = False


def is_threshold_kind(kind: str) -> bool:
    """True for kinds compared as ``statistic >= threshold`` (or a flag)."""
    try:
        RequirementKind(kind)
    except ValueError:
        return False
    return kind not in CALENDAR_KINDS


def _badge(
    badge_id: str,
    name: str,
    description: str,
    icon: str,
    category: BadgeCategory,
    rarity: BadgeRarity,
    kind: RequirementKind,
    threshold: int | str,
    is_secret: bool = False,
) -> BadgeDefinition:
    return BadgeDefinition(
        id=badge_id,
        name=name,
        description=description,
        icon=icon,
        category=category,
        rarity=rarity,
        requirement=BadgeRequirement(kind=kind.value, threshold=threshold),
        is_secret=is_secret,
    )


C = BadgeCategory
R = BadgeRarity
K = RequirementKind


# =============================================================================
# BADGE DEFINITIONS (catalog order is the display and tie-break order)
# =============================================================================

BADGES: list[BadgeDefinition] = [
    # First steps
    _badge("first_analysis", "İlk Çizgi", "İlk analizini yap", "✏️", C.FIRST_STEPS, R.COMMON, K.TOTAL_ANALYSES, 1),
    _badge("first_story", "Masal Başlangıcı", "İlk masalını oluştur", "📖", C.FIRST_STEPS, R.COMMON, K.TOTAL_STORIES, 1),
    _badge("first_coloring", "Renk Ustası Adayı", "İlk boyama sayfanı oluştur", "🎨", C.FIRST_STEPS, R.COMMON, K.TOTAL_COLORINGS, 1),
    _badge("first_child", "Aile Kurucusu", "İlk çocuğunu ekle", "👶", C.FIRST_STEPS, R.COMMON, K.FIRST_CHILD, 1),
    _badge("profile_complete", "Profil Yıldızı", "Profilini tamamla", "⭐", C.FIRST_STEPS, R.COMMON, K.PROFILE_COMPLETE, 1),

    # Creativity - analyses
    _badge("analysis_5", "Çizim Meraklısı", "5 analiz yap", "🔍", C.CREATIVITY, R.COMMON, K.TOTAL_ANALYSES, 5),
    _badge("analysis_10", "Çizim Avcısı", "10 analiz yap", "🎯", C.CREATIVITY, R.COMMON, K.TOTAL_ANALYSES, 10),
    _badge("analysis_25", "Çizim Uzmanı", "25 analiz yap", "🏅", C.CREATIVITY, R.RARE, K.TOTAL_ANALYSES, 25),
    _badge("analysis_50", "Çizim Ustası", "50 analiz yap", "🎖️", C.CREATIVITY, R.EPIC, K.TOTAL_ANALYSES, 50),
    _badge("analysis_100", "Çizim Efsanesi", "100 analiz yap", "👑", C.CREATIVITY, R.LEGENDARY, K.TOTAL_ANALYSES, 100),

    # Creativity - stories
    _badge("story_5", "Masal Anlatıcısı", "5 masal oluştur", "📚", C.CREATIVITY, R.COMMON, K.TOTAL_STORIES, 5),
    _badge("story_10", "Masal Yazarı", "10 masal oluştur", "✍️", C.CREATIVITY, R.COMMON, K.TOTAL_STORIES, 10),
    _badge("story_25", "Masal Ustası", "25 masal oluştur", "📜", C.CREATIVITY, R.RARE, K.TOTAL_STORIES, 25),
    _badge("story_50", "Masal Büyücüsü", "50 masal oluştur", "🧙", C.CREATIVITY, R.EPIC, K.TOTAL_STORIES, 50),
    _badge("story_100", "Masal Efsanesi", "100 masal oluştur", "🌟", C.CREATIVITY, R.LEGENDARY, K.TOTAL_STORIES, 100),

    # Creativity - coloring pages
    _badge("coloring_5", "Renk Avcısı", "5 boyama sayfası oluştur", "🖍️", C.CREATIVITY, R.COMMON, K.TOTAL_COLORINGS, 5),
    _badge("coloring_10", "Renk Ustası", "10 boyama sayfası oluştur", "🎨", C.CREATIVITY, R.COMMON, K.TOTAL_COLORINGS, 10),
    _badge("coloring_25", "Renk Büyücüsü", "25 boyama sayfası oluştur", "🌈", C.CREATIVITY, R.RARE, K.TOTAL_COLORINGS, 25),
    _badge("coloring_50", "Renk Şampiyonu", "50 boyama sayfası oluştur", "🏆", C.CREATIVITY, R.EPIC, K.TOTAL_COLORINGS, 50),
    _badge("coloring_100", "Renk Efsanesi", "100 boyama sayfası oluştur", "💎", C.CREATIVITY, R.LEGENDARY, K.TOTAL_COLORINGS, 100),

    # Coloring master
    _badge("first_masterpiece", "İlk Şaheser", "İlk boyamanı tamamla", "🖼️", C.COLORING_MASTER, R.COMMON, K.COMPLETED_COLORINGS, 1),
    _badge("gallery_starter", "Galeri Başlangıcı", "5 boyama tamamla", "🎭", C.COLORING_MASTER, R.COMMON, K.COMPLETED_COLORINGS, 5),
    _badge("art_collector", "Sanat Koleksiyoncusu", "10 boyama tamamla", "🏛️", C.COLORING_MASTER, R.RARE, K.COMPLETED_COLORINGS, 10),
    _badge("gallery_curator", "Galeri Küratörü", "25 boyama tamamla", "👨‍🎨", C.COLORING_MASTER, R.EPIC, K.COMPLETED_COLORINGS, 25),
    _badge("museum_worthy", "Müze Değerinde", "50 boyama tamamla", "🏆", C.COLORING_MASTER, R.LEGENDARY, K.COMPLETED_COLORINGS, 50),

    # Color explorer
    _badge("color_curious", "Renk Meraklısı", "10 farklı renk kullan", "🔴", C.COLOR_EXPLORER, R.COMMON, K.COLORS_USED_TOTAL, 10),
    _badge("rainbow_chaser", "Gökkuşağı Avcısı", "25 farklı renk kullan", "🌈", C.COLOR_EXPLORER, R.COMMON, K.COLORS_USED_TOTAL, 25),
    _badge("color_connoisseur", "Renk Uzmanı", "50 farklı renk kullan", "🎨", C.COLOR_EXPLORER, R.RARE, K.COLORS_USED_TOTAL, 50),
    _badge("palette_master", "Palet Ustası", "100 farklı renk kullan", "🎭", C.COLOR_EXPLORER, R.EPIC, K.COLORS_USED_TOTAL, 100),
    _badge("chromatic_legend", "Kromatik Efsane", "200 farklı renk kullan", "💎", C.COLOR_EXPLORER, R.LEGENDARY, K.COLORS_USED_TOTAL, 200),
    _badge("colorful_creation", "Renkli Yaratım", "Tek eserde 5+ renk kullan", "🖌️", C.COLOR_EXPLORER, R.COMMON, K.COLORS_USED_SINGLE, 5),
    _badge("rainbow_artwork", "Gökkuşağı Eseri", "Tek eserde 10+ renk kullan", "🌟", C.COLOR_EXPLORER, R.RARE, K.COLORS_USED_SINGLE, 10),
    _badge("chromatic_masterpiece", "Kromatik Şaheser", "Tek eserde 15+ renk kullan", "✨", C.COLOR_EXPLORER, R.EPIC, K.COLORS_USED_SINGLE, 15),

    # Brush master
    _badge("brush_beginner", "Fırça Çırağı", "3 farklı fırça türü dene", "🖌️", C.BRUSH_MASTER, R.COMMON, K.BRUSH_TYPES_USED, 3),
    _badge("brush_explorer", "Fırça Kaşifi", "5 farklı fırça türü dene", "🎨", C.BRUSH_MASTER, R.RARE, K.BRUSH_TYPES_USED, 5),
    _badge("brush_virtuoso", "Fırça Virtüözü", "Tüm 7 fırça türünü dene", "🏆", C.BRUSH_MASTER, R.EPIC, K.BRUSH_TYPES_USED, 7),
    _badge("premium_curious", "Premium Meraklısı", "İlk premium fırçayı kullan", "💫", C.BRUSH_MASTER, R.RARE, K.PREMIUM_BRUSHES_USED, 1),
    _badge("premium_collector", "Premium Koleksiyoncu", "3 farklı premium fırça kullan", "💎", C.BRUSH_MASTER, R.EPIC, K.PREMIUM_BRUSHES_USED, 3),
    _badge("premium_master", "Premium Ustası", "Tüm premium fırçaları kullan", "👑", C.BRUSH_MASTER, R.LEGENDARY, K.PREMIUM_BRUSHES_USED, 5),

    # Smart artist
    _badge("ai_curious", "Yapay Zeka Meraklısı", "İlk AI renk önerisini kullan", "🤖", C.SMART_ARTIST, R.COMMON, K.AI_SUGGESTIONS_USED, 1),
    _badge("ai_collaborator", "AI İşbirlikçisi", "10 kez AI öneri kullan", "🧠", C.SMART_ARTIST, R.RARE, K.AI_SUGGESTIONS_USED, 10),
    _badge("ai_partner", "AI Ortağı", "25 kez AI öneri kullan", "🌟", C.SMART_ARTIST, R.EPIC, K.AI_SUGGESTIONS_USED, 25),
    _badge("harmony_seeker", "Uyum Arayıcısı", "İlk renk harmonisi kullan", "🎵", C.SMART_ARTIST, R.COMMON, K.HARMONY_COLORS_USED, 1),
    _badge("harmony_artist", "Uyum Sanatçısı", "10 kez renk harmonisi kullan", "🎶", C.SMART_ARTIST, R.RARE, K.HARMONY_COLORS_USED, 10),
    _badge("harmony_master", "Uyum Ustası", "25 kez renk harmonisi kullan", "🎼", C.SMART_ARTIST, R.EPIC, K.HARMONY_COLORS_USED, 25),
    _badge("reference_starter", "Referans Başlangıcı", "İlk referans görsel kullan", "📷", C.SMART_ARTIST, R.COMMON, K.REFERENCE_IMAGES_USED, 1),
    _badge("reference_pro", "Referans Profesyoneli", "10 kez referans görsel kullan", "📸", C.SMART_ARTIST, R.RARE, K.REFERENCE_IMAGES_USED, 10),

    # Coloring streak
    _badge("coloring_streak_3", "Boyama Çırağı", "3 gün üst üste boya", "🔥", C.COLORING_STREAK, R.COMMON, K.COLORING_STREAK, 3),
    _badge("coloring_streak_7", "Haftalık Sanatçı", "7 gün üst üste boya", "⭐", C.COLORING_STREAK, R.RARE, K.COLORING_STREAK, 7),
    _badge("coloring_streak_14", "İki Haftalık Usta", "14 gün üst üste boya", "💪", C.COLORING_STREAK, R.EPIC, K.COLORING_STREAK, 14),
    _badge("coloring_streak_30", "Aylık Efsane", "30 gün üst üste boya", "👑", C.COLORING_STREAK, R.LEGENDARY, K.COLORING_STREAK, 30),

    # Dedication (minutes)
    _badge("time_spent_30", "Sanat Zamanı", "Toplam 30 dakika boyama yap", "⏱️", C.DEDICATION, R.COMMON, K.COLORING_TIME_TOTAL, 30),
    _badge("time_spent_60", "Sanat Saati", "Toplam 1 saat boyama yap", "🕐", C.DEDICATION, R.COMMON, K.COLORING_TIME_TOTAL, 60),
    _badge("time_spent_300", "Sanat Günü", "Toplam 5 saat boyama yap", "🌅", C.DEDICATION, R.RARE, K.COLORING_TIME_TOTAL, 300),
    _badge("time_spent_600", "Sanat Haftası", "Toplam 10 saat boyama yap", "🌙", C.DEDICATION, R.EPIC, K.COLORING_TIME_TOTAL, 600),
    _badge("time_spent_1800", "Sanat Yaşamı", "Toplam 30 saat boyama yap", "🌟", C.DEDICATION, R.LEGENDARY, K.COLORING_TIME_TOTAL, 1800),

    # Sessions
    _badge("speed_artist", "Hızlı Sanatçı", "5 dakikadan kısa sürede tamamla", "⚡", C.SESSION, R.RARE, K.QUICK_COLORING, 1),
    _badge("marathon_artist", "Maraton Sanatçısı", "30 dakikadan uzun tek oturum", "🏃", C.SESSION, R.RARE, K.MARATHON_COLORING, 1),

    # Persistence
    _badge("never_give_up", "Asla Pes Etme", "Geri al'ı kullan ve devam et", "💪", C.PERSISTENCE, R.COMMON, K.UNDO_AND_CONTINUE, 1),
    _badge("persistent_artist", "Azimli Sanatçı", "10 kez geri al'ı kullan ve devam et", "🔄", C.PERSISTENCE, R.RARE, K.UNDO_AND_CONTINUE, 10),

    # Secret coloring time-of-day
    _badge("secret_midnight_artist", "Gece Yarısı Sanatçısı", "Gece yarısından sonra boya", "🌙", C.SECRET, R.RARE, K.COLORING_TIME_OF_DAY, "midnight", is_secret=True),
    _badge("secret_sunrise_creator", "Şafak Yaratıcısı", "Gün doğumunda boya", "🌅", C.SECRET, R.RARE, K.COLORING_TIME_OF_DAY, "sunrise", is_secret=True),
    _badge("secret_golden_hour", "Altın Saat", "Gün batımında boya", "🌇", C.SECRET, R.EPIC, K.COLORING_TIME_OF_DAY, "golden_hour", is_secret=True),

    # Explorer
    _badge("explorer_3_tests", "Test Kaşifi", "3 farklı test türü dene", "🔍", C.EXPLORER, R.COMMON, K.UNIQUE_TEST_TYPES, 3),
    _badge("explorer_5_tests", "Test Gezgini", "5 farklı test türü dene", "🧭", C.EXPLORER, R.RARE, K.UNIQUE_TEST_TYPES, 5),
    _badge("explorer_all_tests", "Test Ustası", "Tüm 9 test türünü dene", "🏆", C.EXPLORER, R.LEGENDARY, K.UNIQUE_TEST_TYPES, 9),
    _badge("multiple_children", "Kalabalık Aile", "Birden fazla çocuk ekle", "👨‍👩‍👧‍👦", C.EXPLORER, R.RARE, K.MULTIPLE_CHILDREN, 2),

    # Consistency
    _badge("streak_3", "Düzenli Ziyaretçi", "3 gün üst üste kullan", "🔥", C.CONSISTENCY, R.COMMON, K.CONSECUTIVE_DAYS, 3),
    _badge("streak_7", "Haftalık Yıldız", "7 gün üst üste kullan", "⭐", C.CONSISTENCY, R.RARE, K.CONSECUTIVE_DAYS, 7),
    _badge("streak_14", "Süper Kullanıcı", "14 gün üst üste kullan", "💪", C.CONSISTENCY, R.EPIC, K.CONSECUTIVE_DAYS, 14),
    _badge("streak_30", "Efsane", "30 gün üst üste kullan", "👑", C.CONSISTENCY, R.LEGENDARY, K.CONSECUTIVE_DAYS, 30),

    # Special days
    _badge("special_23_nisan", "Çocuk Bayramı", "23 Nisan'da uygulamayı kullan", "🎈", C.SPECIAL, R.RARE, K.SPECIAL_DAY, "04-23"),
    _badge("special_29_ekim", "Cumhuriyet Çocuğu", "29 Ekim'de uygulamayı kullan", "🇹🇷", C.SPECIAL, R.RARE, K.SPECIAL_DAY, "10-29"),
    _badge("special_new_year", "Yeni Yıl Büyücüsü", "1 Ocak'ta uygulamayı kullan", "🎉", C.SPECIAL, R.RARE, K.SPECIAL_DAY, "01-01"),
    _badge("special_19_mayis", "Gençlik Ruhu", "19 Mayıs'ta uygulamayı kullan", "🏃", C.SPECIAL, R.RARE, K.SPECIAL_DAY, "05-19"),

    # Secret
    _badge("secret_night_owl", "Gece Kuşu", "Gece yarısından sonra kullan", "🦉", C.SECRET, R.RARE, K.TIME_OF_DAY, "night", is_secret=True),
    _badge("secret_early_bird", "Erken Kalkan", "Sabah 6'dan önce kullan", "🌅", C.SECRET, R.RARE, K.TIME_OF_DAY, "early_morning", is_secret=True),
    _badge("secret_weekend_warrior", "Hafta Sonu Savaşçısı", "Hem Cumartesi hem Pazar kullan", "🎮", C.SECRET, R.EPIC, K.SPECIAL_DAY, "weekend_both", is_secret=True),
]


# =============================================================================
# CALENDAR / TIME-WINDOW TABLES
# =============================================================================

# "MM-DD" -> badge id
SPECIAL_DAY_BADGES: dict[str, str] = {
    "01-01": "special_new_year",
    "04-23": "special_23_nisan",
    "05-19": "special_19_mayis",
    "10-29": "special_29_ekim",
}

WEEKEND_BADGE_ID = "secret_weekend_warrior"

# badge id -> (start hour inclusive, end hour exclusive), local time
TIME_OF_DAY_BUCKETS: dict[str, tuple[int, int]] = {
    "secret_night_owl": (0, 4),
    "secret_early_bird": (4, 6),
}

COLORING_TIME_BUCKETS: dict[str, tuple[int, int]] = {
    "secret_midnight_artist": (0, 3),
    "secret_sunrise_creator": (5, 7),
    "secret_golden_hour": (18, 20),
}

BRUSH_TYPES = ("standard", "pencil", "watercolor", "marker", "spray", "crayon", "highlighter")
PREMIUM_BRUSHES = frozenset({"watercolor", "marker", "spray", "crayon", "highlighter"})


# =============================================================================
# LOOKUPS
# =============================================================================

_BY_ID: dict[str, BadgeDefinition] = {}
for _definition in BADGES:
    if _definition.id in _BY_ID:
        raise ValueError(f"Duplicate badge id in catalog: {_definition.id}")
    _BY_ID[_definition.id] = _definition


def get_badge_by_id(badge_id: str) -> BadgeDefinition | None:
    return _BY_ID.get(badge_id)


def get_badges_by_category(category: BadgeCategory) -> list[BadgeDefinition]:
    return [b for b in BADGES if b.category == category]


def get_visible_badges() -> list[BadgeDefinition]:
    """Badges shown in listings (secret ones are only discovered by unlocking)."""
    return [b for b in BADGES if not b.is_secret]


def get_secret_badges() -> list[BadgeDefinition]:
    return [b for b in BADGES if b.is_secret]


def get_badges_grouped_by_category() -> dict[BadgeCategory, list[BadgeDefinition]]:
    grouped: dict[BadgeCategory, list[BadgeDefinition]] = {}
    for badge in BADGES:
        grouped.setdefault(badge.category, []).append(badge)
    return grouped


def hour_in_bucket(hour: int, bucket: tuple[int, int]) -> bool:
    start, end = bucket
    return start <= hour < end
