"""Infer implicit reference candidates from natural-language text.

The extractor is purely lexical: word classes come from small built-in word
lists and suffix rules rather than a tagger model, so results are stable
across machines and need no downloaded resources.

Pipeline:
  * `pre_strip` removes markdown syntax, symbols, quotes and contractions
    and leaves comma-separated runs of plain words;
  * the words are split into chunks at punctuation, stopwords, common verbs,
    bare word endings, paths, keyboard chords and very short tokens;
  * every chunk with at least one noun yields the noun phrase, then each
    modifier word, then each modifier joined to the noun phrase.
"""
from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable, List

from .references import slugify

MIN_WORD_LENGTH = 3
MIN_SUFFIX_STEM = 3

_STOPWORDS = {
    "about", "above", "across", "after", "afterwards", "again", "against", "all",
    "almost", "alone", "along", "already", "also", "although", "always", "among",
    "amongst", "and", "another", "any", "anyhow", "anyone", "anything", "anyway",
    "anywhere", "around", "because", "before", "beforehand", "behind", "below",
    "beside", "besides", "between", "beyond", "both", "but", "by", "cannot",
    "could", "did", "does", "doing", "done", "down", "during", "each", "either",
    "else", "elsewhere", "enough", "etc", "even", "ever", "every", "everyone",
    "everything", "everywhere", "except", "few", "for", "from", "further", "had",
    "has", "have", "having", "hence", "her", "here", "hereafter", "hereby",
    "herein", "hers", "herself", "him", "himself", "his", "how", "however",
    "indeed", "into", "its", "itself", "just", "least", "less", "many", "may",
    "might", "mine", "more", "moreover", "most", "mostly", "much", "must",
    "myself", "neither", "never", "nevertheless", "next", "nobody", "none",
    "noone", "nor", "not", "nothing", "now", "nowhere", "off", "often", "once",
    "one", "only", "onto", "other", "others", "otherwise", "our", "ours",
    "ourselves", "out", "over", "own", "per", "perhaps", "quite", "rather",
    "really", "same", "several", "she", "should", "since", "some", "somehow",
    "someone", "something", "sometime", "sometimes", "somewhere", "still", "such",
    "than", "that", "the", "their", "theirs", "them", "themselves", "then",
    "thence", "there", "thereafter", "thereby", "therefore", "therein",
    "thereupon", "these", "they", "this", "those", "though", "through",
    "throughout", "thru", "thus", "together", "too", "toward", "towards",
    "under", "unless", "until", "upon", "very", "via", "was", "were", "what",
    "whatever", "when", "whence", "whenever", "where", "whereafter", "whereas",
    "whereby", "wherein", "whereupon", "wherever", "whether", "which", "while",
    "whither", "who", "whoever", "whole", "whom", "whose", "why", "will", "with",
    "within", "without", "would", "yet", "you", "your", "yours", "yourself",
    "yourselves", "are", "being", "been", "can", "let", "lets",
    "shall", "two", "three", "four", "five", "six", "seven", "eight", "nine",
    "ten", "first", "second", "third", "last", "way", "ways", "thing", "things",
    "lot", "lots", "bit", "kind", "sort", "yes", "instead", "ago",
}

_COMMON_VERBS = {
    "am", "is", "are", "was", "were", "be", "been", "being", "do", "does", "did",
    "doing", "have", "has", "had", "having", "make", "makes", "making", "made",
    "get", "gets", "getting", "got", "gotten", "give", "gives", "giving", "gave",
    "given", "take", "takes", "taking", "took", "taken", "keep", "keeps",
    "keeping", "kept", "know", "knows", "knowing", "knew", "known", "think",
    "thinks", "thought", "feel", "feels", "felt", "see", "sees", "seeing", "saw",
    "seen", "say", "says", "saying", "said", "tell", "tells", "telling", "told",
    "look", "looks", "looking", "want", "wants", "wanted", "need", "needs",
    "needed", "allow", "allows", "allowed", "use", "uses", "used", "using",
    "go", "goes", "going", "went", "gone", "come", "comes", "coming", "came",
    "put", "puts", "try", "tries", "tried", "open", "opens", "opened", "close",
    "closes", "closed", "seem", "seems", "seemed", "become", "becomes", "became",
    "find", "finds", "found", "help", "helps", "helped", "show", "shows",
    "showed", "shown", "explain", "explains", "discuss", "discusses", "talk",
    "talks", "like", "likes", "liked", "mean", "means", "meant", "provide",
    "provides", "provided", "include", "includes", "included", "contain",
    "contains", "contained", "add", "adds", "added", "create", "creates",
    "created", "read", "reads", "write", "writes", "wrote", "written", "work",
    "works", "worked", "run", "runs", "ran", "start", "starts", "started",
}

_INTERJECTIONS = {
    "hello", "hey", "yeah", "yep", "nope", "okay", "wow", "oops", "please",
    "thanks", "thank", "hmm", "ahh", "uh", "erm", "well", "sure",
}

_ADJECTIVES = {
    "awesome", "small", "large", "big", "little", "tiny", "huge", "great",
    "good", "bad", "best", "better", "worse", "worst", "new", "old", "young",
    "lightweight", "heavyweight", "fun", "funny", "current", "single", "simple",
    "complex", "quick", "fast", "slow", "high", "low", "long", "short", "main",
    "important", "common", "rare", "free", "full", "empty", "easy", "hard",
    "difficult", "bold", "bright", "dark", "light", "clean", "clear", "early",
    "late", "recent", "modern", "ancient", "open", "private", "public", "real",
    "true", "false", "right", "wrong", "left", "major", "minor", "basic",
    "advanced", "different", "similar", "general", "specific", "special",
    "personal", "local", "global", "final", "initial", "strong", "weak",
    "happy", "sad", "red", "green", "blue", "black", "white", "yellow", "hot",
    "cold", "warm", "cool", "rich", "poor", "deep", "wide", "narrow", "smart",
    "nice", "fine", "raw", "pure", "quiet", "loud", "soft",
    "technical", "natural", "digital", "visual", "mental", "physical",
}

_ADJECTIVE_SUFFIXES = ("ful", "ous", "ive", "able", "ible", "ical", "less", "ish", "some")

# Nouns that happen to end in an adjective suffix.
_NOUN_EXCEPTIONS = {
    "archive", "objective", "directive", "executive", "native", "motive",
    "detective", "initiative", "alternative", "representative", "narrative",
    "incentive", "perspective", "variable", "vegetable", "timetable",
    "constable", "cable", "handful", "radish", "publish", "polish", "finish",
    "chromosome",
}

# Word endings that show up on their own when a word is split apart.
_SUFFIX_FRAGMENTS = {
    "ing", "ings", "ers", "est", "ies", "ion", "ions", "ness", "ment", "ity",
    "ism", "ist", "ful", "ous", "ive", "able", "ible", "ish", "less",
}

# Plural-looking words that are already singular.
_SINGULAR_EXCEPTIONS = {"series", "species", "news", "lens", "physics", "mathematics"}

_WIKILINK_PATTERN = re.compile(r"\[\[[^\]]*\]\]")
_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK_PATTERN = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_CODE_PATTERN = re.compile(r"(`+)[^`]*?\1")
_EMPHASIS_PATTERN = re.compile(r"(?<!\w)(\*\*|__|\*|_)(?=\S)(.+?)(?<=\S)\1(?!\w)")
_QUOTE_PATTERN = re.compile(r"[\"“”«»„]")
_EDGE_APOSTROPHE_PATTERN = re.compile(r"(?<!\w)'|'(?!\w)")
_POSSESSIVE_PATTERN = re.compile(r"^([^']+)'s(?=[^\w']|$)", re.IGNORECASE)
_PATH_TOKEN_PATTERN = re.compile(r"^\S*\w/\w\S*$")
# Keyboard chords such as ctrl+e or ctrl+shift+p.
_CHORD_TOKEN_PATTERN = re.compile(r"^\w+(?:\+\w+)*\+\w(?!\w)")
_SYMBOL_PATTERN = re.compile(r"[^\w\s']|_")
_SEPARATOR_PATTERN = re.compile(r"\s*(?:,\s*)+")
_WHITESPACE_PATTERN = re.compile(r"\s+")

_IGNORED_CATEGORIES = {"Mn", "Me", "Cf"}


@dataclass
class NaturalResult:
    """Candidates found in one piece of text."""
    links: List[str] = field(default_factory=list)


def _strip_markup(text: str) -> str:
    text = _WIKILINK_PATTERN.sub(",", text)
    text = _IMAGE_PATTERN.sub(r"\1", text)
    text = _LINK_PATTERN.sub(r"\1", text)
    text = _CODE_PATTERN.sub(",", text)
    return _EMPHASIS_PATTERN.sub(r"\2", text)


def _strip_marks(text: str) -> str:
    text = unicodedata.normalize("NFC", text)
    return "".join(char for char in text if unicodedata.category(char) not in _IGNORED_CATEGORIES)


def _strip_token(token: str) -> str:
    if _PATH_TOKEN_PATTERN.match(token):
        return token
    chord = _CHORD_TOKEN_PATTERN.match(token)
    if chord is not None:
        return chord.group(0) + _SYMBOL_PATTERN.sub(",", token[chord.end():])
    if "'" in token:
        # Possessives keep their base word, every other contraction goes.
        match = _POSSESSIVE_PATTERN.match(token)
        if match is None:
            return ","
        token = match.group(1) + token[match.end():]
    return _SYMBOL_PATTERN.sub(",", token)


def pre_strip(text: str) -> str:
    """
    Reduces raw markdown text to comma-separated runs of plain words.

    Symbols, arrows and table pipes become separators, variation selectors
    and combining marks are dropped, quotes and contractions are removed,
    link targets and code spans are discarded (link text is kept), and
    slash-separated path-like tokens and keyboard chords (`ctrl+e`) are left
    exactly as written.
    """
    text = text.replace("’", "'").replace("‘", "'")
    text = _strip_markup(text)
    text = _strip_marks(text)
    text = _QUOTE_PATTERN.sub("", text)
    text = _EDGE_APOSTROPHE_PATTERN.sub("", text)
    tokens = [_strip_token(token) for token in _WHITESPACE_PATTERN.split(text) if token]
    text = " ".join(tokens)
    text = _SEPARATOR_PATTERN.sub(", ", text)
    return text.strip(" ,")


def _is_boundary(word: str) -> bool:
    return (
        len(word) < MIN_WORD_LENGTH
        or "/" in word
        or "+" in word
        or any(char.isdigit() for char in word)
        or word in _STOPWORDS
        or word in _COMMON_VERBS
        or word in _INTERJECTIONS
        or word in _SUFFIX_FRAGMENTS
    )


def _chunks(text: str) -> List[List[str]]:
    chunks: List[List[str]] = []
    for segment in text.split(","):
        current: List[str] = []
        for word in segment.lower().split():
            if _is_boundary(word):
                if current:
                    chunks.append(current)
                current = []
            else:
                current.append(word)
        if current:
            chunks.append(current)
    return chunks


def is_adjective(word: str) -> bool:
    if word in _ADJECTIVES:
        return True
    if word in _NOUN_EXCEPTIONS:
        return False
    return any(
        word.endswith(suffix) and len(word) - len(suffix) >= MIN_SUFFIX_STEM
        for suffix in _ADJECTIVE_SUFFIXES
    )


def natural_aliases(word: str) -> List[str]:
    """
    Singular forms of a plural word; empty when the word already looks singular.

    >>> natural_aliases("words")
    ['word']
    >>> natural_aliases("word")
    []
    """
    lowered = word.lower()
    if (
        len(lowered) <= 3
        or not lowered.endswith("s")
        or lowered in _SINGULAR_EXCEPTIONS
        or lowered.endswith(("ss", "us", "is"))
    ):
        return []
    if lowered.endswith("ies") and len(lowered) > 4:
        return [lowered[:-3] + "y"]
    if lowered.endswith(("sses", "xes", "ches", "shes", "zes")):
        return [lowered[:-2]]
    return [lowered[:-1]]


def _chunk_candidates(chunk: List[str]) -> List[str]:
    modifiers = [word for word in chunk if is_adjective(word)]
    nouns = [word for word in chunk if not is_adjective(word)]
    if not nouns:
        return []
    phrase = "-".join(nouns)
    if len(nouns) == 1:
        head = (natural_aliases(phrase) or [phrase])[0]
    else:
        head = phrase
    return [head, *modifiers, *(f"{modifier}-{phrase}" for modifier in modifiers)]


def _unique(candidates: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for candidate in candidates:
        slug = slugify(candidate)
        if slug and slug not in seen:
            seen.add(slug)
            ordered.append(slug)
    return ordered


def natural_process(text: str) -> NaturalResult:
    """Runs the full pipeline and returns the ordered candidate targets."""
    candidates: List[str] = []
    for chunk in _chunks(pre_strip(text)):
        candidates.extend(_chunk_candidates(chunk))
    return NaturalResult(links=_unique(candidates))


def natural_links(text: str) -> List[str]:
    return natural_process(text).links
