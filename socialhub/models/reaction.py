from typing import Literal


ReactionKind = Literal["like", "love", "laugh", "wow", "sad", "angry"]

REACTION_EMOJIS = {
    "like": "\U0001F44D",
    "love": "❤️",
    "laugh": "\U0001F602",
    "wow": "\U0001F62E",
    "sad": "\U0001F622",
    "angry": "\U0001F621",
}
REACTION_KINDS = tuple(REACTION_EMOJIS)

