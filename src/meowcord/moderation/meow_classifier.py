"""
Meow classification.

A message is a valid meow when it contains at least one meow-shaped word and
everything else in it is an emoji or a character commonly used to build text
emoticons (``:3``, ``>w<``, ``T_T``...). The meow words are removed first so
that ``m`` (which is not an emoticon letter) is only ever accepted as part of
a meow.
"""

import re

# "m", then any run of e/r/o/w, then optional trailing w/o: meow, mrow, mrrrow, meeoow...
MEOW_PATTERN = re.compile(r"m+[erow]+[wo]*", re.IGNORECASE)

# Discord custom emoji markup: <:name:id> and animated <a:name:id>
CUSTOM_EMOJI_PATTERN = re.compile(r"<a?:\w+:\d+>")

# Python's re has no emoji property classes, so the Emoji and Emoji_Component
# code points are listed explicitly. Enclosed letters, dingbat numerals and
# other plain symbols in the same blocks are left out.
EMOJI_PATTERN = re.compile(
    "["
    "0-9#*"                          # keycap bases
    "\u00a9\u00ae"                   # copyright, registered
    "\u203c\u2049"                   # double exclamation, exclamation question
    "\u2122\u2139"                   # trade mark, information
    "\u2194-\u2199\u21a9\u21aa"      # arrows
    "\u231a\u231b\u2328\u23cf"
    "\u23e9-\u23f3\u23f8-\u23fa"     # media controls
    "\u24c2"
    "\u25aa\u25ab\u25b6\u25c0\u25fb-\u25fe"
    # misc symbols
    "\u2600-\u2604\u260e\u2611\u2614\u2615\u2618\u261d\u2620\u2622\u2623"
    "\u2626\u262a\u262e\u262f\u2638-\u263a\u2640\u2642\u2648-\u2653"
    "\u265f\u2660\u2663\u2665\u2666\u2668\u267b\u267e\u267f\u2692-\u2697"
    "\u2699\u269b\u269c\u26a0\u26a1\u26a7\u26aa\u26ab\u26b0\u26b1\u26bd\u26be"
    "\u26c4\u26c5\u26c8\u26ce\u26cf\u26d1\u26d3\u26d4\u26e9\u26ea\u26f0-\u26f5"
    "\u26f7-\u26fa\u26fd"
    # dingbats
    "\u2702\u2705\u2708-\u270d\u270f\u2712\u2714\u2716\u271d\u2721\u2728"
    "\u2733\u2734\u2744\u2747\u274c\u274e\u2753-\u2755\u2757\u2763\u2764"
    "\u2795-\u2797\u27a1\u27b0\u27bf"
    "\u2934\u2935"
    "\u2b05-\u2b07\u2b1b\u2b1c\u2b50\u2b55"
    "\u3030\u303d\u3297\u3299"
    "\u200d"                         # zero width joiner
    "\u20e3"                         # combining enclosing keycap
    "\ufe0e\ufe0f"                   # text/emoji presentation selectors
    "\U0001f004\U0001f0cf"           # mahjong tile, joker
    "\U0001f170\U0001f171\U0001f17e\U0001f17f\U0001f18e\U0001f191-\U0001f19a"  # squared A, B, O, P, AB, CL..VS
    "\U0001f1e6-\U0001f1ff"          # regional indicators (flags)
    "\U0001f201\U0001f202\U0001f21a\U0001f22f\U0001f232-\U0001f23a\U0001f250\U0001f251"
    # pictographs, emoticons, transport, skin tones
    "\U0001f300-\U0001f321\U0001f324-\U0001f393\U0001f396\U0001f397"
    "\U0001f399-\U0001f39b\U0001f39e-\U0001f3f0\U0001f3f3-\U0001f3f5"
    "\U0001f3f7-\U0001f4fd\U0001f4ff-\U0001f53d\U0001f549-\U0001f54e"
    "\U0001f550-\U0001f567\U0001f56f\U0001f570\U0001f573-\U0001f57a\U0001f587"
    "\U0001f58a-\U0001f58d\U0001f590\U0001f595\U0001f596\U0001f5a4\U0001f5a5"
    "\U0001f5a8\U0001f5b1\U0001f5b2\U0001f5bc\U0001f5c2-\U0001f5c4"
    "\U0001f5d1-\U0001f5d3\U0001f5dc-\U0001f5de\U0001f5e1\U0001f5e3\U0001f5e8"
    "\U0001f5ef\U0001f5f3\U0001f5fa-\U0001f64f"
    "\U0001f680-\U0001f6c5\U0001f6cb-\U0001f6d2\U0001f6d5-\U0001f6d7"
    "\U0001f6dc-\U0001f6e5\U0001f6e9\U0001f6eb\U0001f6ec\U0001f6f0\U0001f6f3-\U0001f6fc"
    "\U0001f7e0-\U0001f7eb\U0001f7f0"
    "\U0001f90c-\U0001f93a\U0001f93c-\U0001f945\U0001f947-\U0001f9ff"
    "\U0001fa70-\U0001fa7c\U0001fa80-\U0001fa89\U0001fa8f-\U0001fac6"
    "\U0001face-\U0001fadc\U0001fadf-\U0001fae9\U0001faf0-\U0001faf8"
    "\U000e0020-\U000e007f"          # tag sequences
    "]"
)

# Letters and symbols that make up text emoticons. 'm', 'M' and lowercase 't' are not emoticon letters.
EMOTICON_PATTERN = re.compile(
    r"[TwWuUvVoO0xXdDpPbBcCnNqQsSzZaAeEiIyYrRhHkKlLfFgGjJ"
    r":;=\-_^><()\[\]{}|/\\*~`'\".,!?@#$%&+\s]"
)


def contains_meow(text: str) -> bool:
    """Return True if ``text`` contains at least one meow-shaped word."""
    return MEOW_PATTERN.search(text) is not None


def strip_emojis(text: str) -> str:
    """Remove Discord custom emoji and Unicode emoji code points from ``text``."""
    return EMOJI_PATTERN.sub("", CUSTOM_EMOJI_PATTERN.sub("", text))


def leftover_content(text: str) -> str:
    """Return what remains of ``text`` once meows, emojis and emoticon characters are removed."""
    remainder = MEOW_PATTERN.sub("", text.strip())
    remainder = strip_emojis(remainder)
    return EMOTICON_PATTERN.sub("", remainder)


def is_valid_meow(text: str) -> bool:
    """Decide whether a message is acceptable in the meow channel.

    Parameters
    ----------
    text:
        Raw message content.

    Returns
    -------
    bool
        True when the message has at least one meow and nothing but meows,
        emojis and emoticon characters.
    """
    cleaned = (text or "").strip()
    if not cleaned:
        return False

    if not contains_meow(cleaned):
        return False

    return leftover_content(cleaned) == ""
