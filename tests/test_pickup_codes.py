from itertools import chain, repeat

from medistock.utils.pickup_codes import (
    PICKUP_CODE_ALPHABET,
    generate_pickup_code,
    normalize_pickup_code,
    random_pickup_code,
)


def _scripted(codes):
    it = iter(codes)
    return lambda length: next(it)


class TestPickupCodes:
    def test_random_code_uses_unambiguous_alphabet(self):
        code = random_pickup_code(6)

        assert len(code) == 6
        assert set(code) <= set(PICKUP_CODE_ALPHABET)
        assert not set("01IO") & set(PICKUP_CODE_ALPHABET)

    def test_normalize(self):
        assert normalize_pickup_code("  ab12cd ") == "AB12CD"
        assert normalize_pickup_code(None) == ""

    def test_retries_on_collision(self):
        taken = {"AAAAAA", "BBBBBB"}

        code = generate_pickup_code(taken.__contains__, draw=_scripted(["AAAAAA", "BBBBBB", "CCCCCC"]))

        assert code == "CCCCCC"

    def test_falls_back_to_longer_code(self):
        lengths = []

        def draw(length):
            lengths.append(length)
            return "X" * length

        code = generate_pickup_code(lambda c: len(c) == 6, max_attempts=3, draw=draw)

        assert code == "XXXXXXXX"
        assert lengths == [6, 6, 6, 8]

    def test_gives_up_when_every_draw_collides(self):
        draw = _scripted(chain(repeat("AAAAAA", 5), repeat("AAAAAAAA", 5)))

        assert generate_pickup_code(lambda c: True, draw=draw) is None
