import pytest

from core.data import PaperRecord, clear_records_cache, records_frame


@pytest.fixture(autouse=True)
def _fresh_records_cache():
    clear_records_cache()
    yield
    clear_records_cache()


@pytest.fixture
def sample_records():
    return records_frame(
        [
            PaperRecord("2023-01-10", "Staff", "Finance", 1, 0, 1, 100),
            PaperRecord("15/03/2023", "Student", "IT", 2, 40, 1, 20),
            PaperRecord("2024-06-01", "Staff", "IT", 1, 30, 1, 30),
            PaperRecord("5-7-2024", "Teacher", "", 2, 0, 2, 50),
            PaperRecord("not a date", "Student", "Finance", 1, 10, 1, 10),
        ]
    )
