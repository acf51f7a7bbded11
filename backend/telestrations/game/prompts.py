from __future__ import annotations

import random
import string

DEFAULT_PROMPTS = [
    "A cat running for president",
    "A snowman on a beach holiday",
    "The world's smallest elephant",
    "A dragon afraid of the dark",
    "Grandma riding a skateboard",
    "A robot learning to dance",
    "Pirates looking for Wi-Fi",
    "A very suspicious sandwich",
    "The moon eating breakfast",
    "A penguin in a business meeting",
    "A haunted vending machine",
    "Dinosaur at the dentist",
    "Octopus playing the drums",
    "A wizard stuck in traffic",
    "Camping on a cloud",
    "A giraffe wearing a scarf",
    "Alien tourists taking selfies",
    "A knight fighting a giant mosquito",
    "Birthday party for a ghost",
    "A tiny house on a turtle's back",
]

FALLBACK_PROMPT = "A default random prompt"

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_game_code(length: int = 5) -> str:
    return "".join(random.choice(_CODE_ALPHABET) for _ in range(length))


def normalize_code(code: object) -> str:
    return str(code or "").strip().upper()
