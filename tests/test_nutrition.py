"""
Tests for daily nutrition targets.
"""

import pytest

from fitai.nutrition import NutritionCalculator
from fitai.schemas import FitnessGoal, Sex, UserProfile


@pytest.fixture
def calculator():
    return NutritionCalculator()


@pytest.fixture
def reference_profile():
    """80 kg, 180 cm, 30 year old man training 4x per week."""
    return UserProfile(
        age=30,
        weight_kg=80.0,
        height_cm=180.0,
        sex=Sex.MALE,
        sessions_per_week=4,
        fitness_goal=FitnessGoal.MAINTENANCE,
    )


def test_bmr_mifflin_st_jeor(calculator, reference_profile):
    """Test BMR for the reference profile: 800 + 1125 - 150 + 5."""
    assert calculator.calculate_bmr(reference_profile) == pytest.approx(1780.0)


def test_bmr_sex_offsets(calculator, reference_profile):
    female = reference_profile.model_copy(update={"sex": Sex.FEMALE})
    other = reference_profile.model_copy(update={"sex": Sex.OTHER})

    assert calculator.calculate_bmr(female) == pytest.approx(1614.0)
    assert calculator.calculate_bmr(other) == pytest.approx(1697.0)


@pytest.mark.parametrize(
    "sessions,multiplier",
    [(3, 1.375), (4, 1.55), (5, 1.725), (6, 1.9), (2, 1.55), (7, 1.55)],
)
def test_activity_multiplier(calculator, sessions, multiplier):
    assert calculator.activity_multiplier(sessions) == multiplier


def test_maintenance_targets(calculator, reference_profile):
    """Test kcal and macros for the reference profile."""
    targets = calculator.calculate_targets(reference_profile)

    assert targets.tdee == pytest.approx(2759.0)
    assert targets.target_calories == 2759
    assert targets.protein_g == pytest.approx(144.0)
    assert targets.fats_g == pytest.approx(76.6)
    assert targets.carbs_g == pytest.approx(373.3, abs=0.1)


def test_goal_adjusts_calories_and_protein(calculator, reference_profile):
    """Test that weight loss removes 300 kcal and raises protein."""
    cutting = reference_profile.model_copy(update={"fitness_goal": FitnessGoal.WEIGHT_LOSS})

    targets = calculator.calculate_targets(cutting)

    assert targets.target_calories == 2459
    assert targets.protein_g == pytest.approx(176.0)


def test_carbs_never_negative(calculator):
    """Test that a tiny energy budget clamps carbs at zero."""
    profile = UserProfile(
        age=100,
        weight_kg=40.0,
        height_cm=100.0,
        sex=Sex.FEMALE,
        fitness_goal=FitnessGoal.WEIGHT_LOSS,
    )

    targets = calculator.calculate_targets(profile)

    assert targets.carbs_g == 0.0
    assert targets.target_calories >= 0
