import os
import sys

import pytest

# Allow importing the packages without installing them
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from discovery.models import Coordinates, Expense, UserPreferences

SYDNEY = Coordinates(lat=-33.8688, lng=151.2093)


@pytest.fixture
def grocery_expense() -> Expense:
    return Expense(
        id="exp-milk",
        name="Milk 2L",
        description="Full cream milk",
        category="Groceries",
        amount=4.5,
        frequency="Weekly",
    )


@pytest.fixture
def subscription_expense() -> Expense:
    return Expense(
        id="exp-stream",
        name="Netflix Premium",
        description="Streaming subscription",
        category="Entertainment",
        amount=25.0,
        frequency="Monthly",
    )


@pytest.fixture
def sydney_preferences() -> UserPreferences:
    return UserPreferences(
        location_radius_km=10,
        coordinates=SYDNEY,
        locality="Sydney",
        country="Australia",
        country_code="au",
    )
