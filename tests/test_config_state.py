import pytest

from vcsdecode.combos import Combo
from vcsdecode.config_state import ComboIndexDecoder
from vcsdecode.exceptions import IdentifierDecodeOverflow, StructuralMismatch


def _combo(name, range_min, range_max, index=0):
    return Combo(
        index=index,
        name=name,
        alias="",
        combo_type=1,
        range_min=range_min,
        range_max=range_max,
        source=0,
        feature_index=0,
        calc_flags=0,
    )


def test_first_combo_is_least_significant():
    decoder = ComboIndexDecoder([_combo("D_A", 0, 1), _combo("D_B", 0, 2)])
    assert decoder.radices == (2, 3)
    assert decoder.combination_count == 6
    assert decoder.decode(0) == (0, 0)
    assert decoder.decode(1) == (1, 0)
    assert decoder.decode(2) == (0, 1)
    assert decoder.decode(5) == (1, 2)


def test_identifier_past_the_space_overflows():
    decoder = ComboIndexDecoder([_combo("D_A", 0, 1), _combo("D_B", 0, 2)])
    with pytest.raises(IdentifierDecodeOverflow) as excinfo:
        decoder.decode(6)
    assert excinfo.value.value == 6
    with pytest.raises(IdentifierDecodeOverflow):
        decoder.decode(-1)


def test_no_dynamic_combos_only_accepts_zero():
    decoder = ComboIndexDecoder([])
    assert decoder.combination_count == 1
    assert decoder.decode(0) == ()
    with pytest.raises(IdentifierDecodeOverflow):
        decoder.decode(1)


def test_values_are_offset_by_range_min():
    decoder = ComboIndexDecoder([_combo("D_LEVEL", 1, 3), _combo("D_FLAG", -1, 0)])
    assert decoder.decode(0) == (1, -1)
    assert decoder.decode(5) == (3, 0)
    assert decoder.encode((3, 0)) == 5


def test_encode_inverts_decode_over_whole_space():
    decoder = ComboIndexDecoder(
        [_combo("D_A", 0, 1), _combo("D_B", 2, 4), _combo("D_C", 0, 3)]
    )
    seen = set()
    for identifier in decoder.iter_identifiers():
        state = decoder.decode(identifier)
        assert decoder.encode(state) == identifier
        seen.add(state)
    assert len(seen) == decoder.combination_count == 24


def test_encode_rejects_bad_states():
    decoder = ComboIndexDecoder([_combo("D_A", 0, 1), _combo("D_B", 0, 2)])
    with pytest.raises(ValueError):
        decoder.encode((0,))
    with pytest.raises(ValueError, match="D_B"):
        decoder.encode((0, 3))


def test_empty_range_is_structural_mismatch():
    with pytest.raises(StructuralMismatch):
        ComboIndexDecoder([_combo("D_BROKEN", 2, 1)])


def test_combo_space_must_fit_identifier_width():
    combos = [_combo(f"D_{i}", 0, 255, index=i) for i in range(8)]
    assert ComboIndexDecoder(combos).combination_count == 1 << 64
    with pytest.raises(IdentifierDecodeOverflow):
        ComboIndexDecoder(combos + [_combo("D_EXTRA", 0, 1, index=8)])
    with pytest.raises(IdentifierDecodeOverflow):
        ComboIndexDecoder(combos[:3], identifier_bits=16)
