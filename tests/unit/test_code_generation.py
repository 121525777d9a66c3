from authbot.domain.services import generate_code, is_well_formed_code


def test_generate_code_format_and_range():
    for _ in range(500):
        c = generate_code()
        assert len(c) == 5 and c.isdigit(), c
        assert 10000 <= int(c) <= 99999


def test_generate_code_is_not_constant():
    assert len({generate_code() for _ in range(50)}) > 1


def test_is_well_formed_code():
    assert is_well_formed_code("12345")
    assert is_well_formed_code("99999")
    assert not is_well_formed_code("01234")
    assert not is_well_formed_code("1234")
    assert not is_well_formed_code("123456")
    assert not is_well_formed_code("12a45")
    assert not is_well_formed_code("")


def test_non_ascii_digits_are_not_well_formed():
    assert not is_well_formed_code("¹²³⁴⁵")
    assert not is_well_formed_code("１２３４５")
    assert not is_well_formed_code("١٢٣٤٥")
