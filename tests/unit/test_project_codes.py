"""
Unit Tests: Project Codes
=========================
Tests project code formatting and free-code allocation.
No external API calls - runs fast.
"""

from datetime import date, datetime

import pytest


class TestMakeProjectCode:
    """Tests for make_project_code function."""

    @pytest.mark.unit
    def test_formats_code(self):
        from provisioning.projects import make_project_code

        assert make_project_code("Boda Ana", "2025-06-15", 1) == "VX001_boda-ana_2025-06-15"

    @pytest.mark.unit
    def test_pads_index(self):
        from provisioning.projects import make_project_code

        assert make_project_code("Gala", "2025-06-15", 42) == "VX042_gala_2025-06-15"
        assert make_project_code("Gala", "2025-06-15", 999) == "VX999_gala_2025-06-15"

    @pytest.mark.unit
    def test_strips_accents_and_punctuation(self):
        from provisioning.projects import make_project_code

        code = make_project_code("  Boda de Ana & Núñez!! ", "2025-06-15", 3)

        assert code == "VX003_boda-de-ana-nunez_2025-06-15"

    @pytest.mark.unit
    def test_is_deterministic(self):
        from provisioning.projects import make_project_code

        assert make_project_code("Boda Ana", "2025-06-15", 7) == make_project_code("Boda Ana", "2025-06-15", 7)

    @pytest.mark.unit
    def test_accepts_date_objects(self):
        from provisioning.projects import make_project_code

        assert make_project_code("Boda Ana", date(2025, 6, 15), 1) == "VX001_boda-ana_2025-06-15"
        assert make_project_code("Boda Ana", datetime(2025, 6, 15, 18, 30), 1) == "VX001_boda-ana_2025-06-15"

    @pytest.mark.unit
    def test_ignores_time_part(self):
        from provisioning.projects import make_project_code

        assert make_project_code("Boda Ana", "2025-06-15T18:30:00Z", 1) == "VX001_boda-ana_2025-06-15"

    @pytest.mark.unit
    def test_symbol_only_name_falls_back(self):
        from provisioning.projects import make_project_code

        assert make_project_code("¡¡¡!!!", "2025-06-15", 1) == "VX001_project_2025-06-15"

    @pytest.mark.unit
    def test_limits_slug_length(self):
        from provisioning.projects import make_project_code

        code = make_project_code("a" * 100, "2025-06-15", 1)

        assert code == f"VX001_{'a' * 40}_2025-06-15"

    @pytest.mark.unit
    def test_rejects_empty_name(self):
        from provisioning.projects import make_project_code
        from provisioning.errors import InvalidRequestError

        with pytest.raises(InvalidRequestError, match="eventName"):
            make_project_code("   ", "2025-06-15", 1)

    @pytest.mark.unit
    def test_rejects_bad_date(self):
        from provisioning.projects import make_project_code
        from provisioning.errors import InvalidRequestError

        with pytest.raises(InvalidRequestError, match="Invalid eventDate"):
            make_project_code("Boda Ana", "15/06/2025", 1)

        with pytest.raises(InvalidRequestError, match="eventDate is required"):
            make_project_code("Boda Ana", "", 1)

    @pytest.mark.unit
    def test_rejects_out_of_range_index(self):
        from provisioning.projects import make_project_code
        from provisioning.errors import InvalidRequestError

        for index in (0, 1000, -1):
            with pytest.raises(InvalidRequestError, match="between 1 and 999"):
                make_project_code("Boda Ana", "2025-06-15", index)


class TestAllocateProjectCode:
    """Tests for allocate_project_code function."""

    @pytest.mark.unit
    def test_returns_first_code_when_free(self):
        from provisioning.projects import allocate_project_code

        assert allocate_project_code("Boda Ana", "2025-06-15", lambda code: False) == "VX001_boda-ana_2025-06-15"

    @pytest.mark.unit
    def test_skips_taken_codes(self):
        """With indices 1 and 2 taken, the third candidate is returned."""
        from provisioning.projects import allocate_project_code

        taken = {"VX001_boda-ana_2025-06-15", "VX002_boda-ana_2025-06-15"}
        checked = []

        def exists(code):
            checked.append(code)
            return code in taken

        assert allocate_project_code("Boda Ana", "2025-06-15", exists) == "VX003_boda-ana_2025-06-15"
        assert checked == [
            "VX001_boda-ana_2025-06-15",
            "VX002_boda-ana_2025-06-15",
            "VX003_boda-ana_2025-06-15",
        ]

    @pytest.mark.unit
    def test_same_name_different_date_is_independent(self):
        from provisioning.projects import allocate_project_code

        taken = {"VX001_boda-ana_2025-06-15"}

        assert allocate_project_code("Boda Ana", "2025-06-16", taken.__contains__) == "VX001_boda-ana_2025-06-16"

    @pytest.mark.unit
    def test_raises_when_exhausted(self):
        from provisioning.projects import allocate_project_code
        from provisioning.errors import CodeExhaustedError

        checked = []

        def exists(code):
            checked.append(code)
            return True

        with pytest.raises(CodeExhaustedError) as exc_info:
            allocate_project_code("Boda Ana", "2025-06-15", exists)

        assert len(checked) == 999
        assert checked[-1] == "VX999_boda-ana_2025-06-15"
        assert exc_info.value.status_code == 409

    @pytest.mark.unit
    def test_respects_lower_ceiling(self):
        from provisioning.projects import allocate_project_code
        from provisioning.errors import CodeExhaustedError

        with pytest.raises(CodeExhaustedError, match="after 3 attempts"):
            allocate_project_code("Gala", "2025-06-15", lambda code: True, max_index=3)
