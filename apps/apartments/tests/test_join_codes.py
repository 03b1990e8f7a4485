import pytest

from apps.apartments.services.join_codes import (
    JOIN_CODE_LENGTH,
    is_valid_join_code,
    normalize_join_code,
    random_join_code,
    unused_join_codes,
)


class TestRandomJoinCode:

    def test_layout(self):
        """Letter, letter, digit, digit, letter, digit."""
        for _ in range(200):
            code = random_join_code()
            assert len(code) == JOIN_CODE_LENGTH
            assert code[0].isalpha() and code[1].isalpha() and code[4].isalpha()
            assert code[2].isdigit() and code[3].isdigit() and code[5].isdigit()
            assert code == code.upper()
            assert is_valid_join_code(code)

    def test_codes_vary(self):
        codes = {random_join_code() for _ in range(50)}
        assert len(codes) > 1


class TestNormalizeJoinCode:

    @pytest.mark.parametrize('raw, expected', [
        ('ab12c3', 'AB12C3'),
        ('  AB12C3 ', 'AB12C3'),
        ('\tab12C3\n', 'AB12C3'),
        ('', ''),
        (None, ''),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_join_code(raw) == expected

    @pytest.mark.parametrize('code', ['AB12C', 'AB12C34', 'ab12c3', '1B12C3', 'AB1XC3', ''])
    def test_invalid_codes(self, code):
        assert not is_valid_join_code(code)


class TestUnusedJoinCodes:

    def test_skips_taken_codes(self, monkeypatch):
        """Taken candidates are skipped until a free one comes up."""
        candidates = iter(['AA11A1', 'BB22B2', 'CC33C3'])
        monkeypatch.setattr(
            'apps.apartments.services.join_codes.random_join_code',
            lambda: next(candidates)
        )
        taken = {'AA11A1', 'BB22B2'}
        checked = []

        def code_exists(code):
            checked.append(code)
            return code in taken

        code = next(unused_join_codes(code_exists=code_exists, max_attempts=5))

        assert code == 'CC33C3'
        assert checked == ['AA11A1', 'BB22B2', 'CC33C3']

    def test_stops_after_max_attempts(self):
        calls = []

        def always_taken(code):
            calls.append(code)
            return True

        assert list(unused_join_codes(code_exists=always_taken, max_attempts=4)) == []
        assert len(calls) == 4

    def test_budget_covers_yielded_codes(self, monkeypatch):
        """Codes handed out and codes skipped draw from the same budget."""
        candidates = iter(['AA11A1', 'BB22B2', 'CC33C3', 'DD44D4', 'EE55E5'])
        monkeypatch.setattr(
            'apps.apartments.services.join_codes.random_join_code',
            lambda: next(candidates)
        )

        codes = list(unused_join_codes(code_exists=lambda code: code == 'BB22B2', max_attempts=4))

        assert codes == ['AA11A1', 'CC33C3', 'DD44D4']
