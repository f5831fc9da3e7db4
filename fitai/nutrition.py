"""
Daily caloric and macronutrient targets.

Targets derive from the user profile:
- BMR via the Mifflin-St Jeor equation
- TDEE = BMR x activity multiplier (from training sessions per week)
- target kcal = TDEE + goal caloric adjustment
- protein = body weight x goal protein multiplier
- fats = 25% of target kcal, carbs = remaining kcal
"""

import logging
from typing import Dict

from pydantic import BaseModel, Field

from fitai.schemas import Sex, UserProfile

logger = logging.getLogger(__name__)

KCAL_PER_G_PROTEIN = 4.0
KCAL_PER_G_CARBS = 4.0
KCAL_PER_G_FAT = 9.0
FAT_SHARE = 0.25

# Sex-specific constant of the Mifflin-St Jeor equation
MIFFLIN_SEX_OFFSET: Dict[Sex, float] = {
    Sex.MALE: 5.0,
    Sex.FEMALE: -161.0,
    Sex.OTHER: -78.0,
}

# Sessions per week -> activity multiplier
ACTIVITY_MULTIPLIERS: Dict[int, float] = {
    3: 1.375,  # Light
    4: 1.55,  # Moderate
    5: 1.725,  # Active
    6: 1.9,  # Very active
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.55


class NutritionTargets(BaseModel):
    """Daily nutrition targets for a profile."""

    bmr: float = Field(..., ge=0.0, description="Basal metabolic rate (kcal/day)")
    tdee: float = Field(..., ge=0.0, description="Total daily energy expenditure (kcal/day)")
    target_calories: int = Field(..., ge=0, description="Goal-adjusted daily kcal")
    protein_g: float = Field(..., ge=0.0)
    carbs_g: float = Field(..., ge=0.0)
    fats_g: float = Field(..., ge=0.0)


class NutritionCalculator:
    """Computes BMR, TDEE and macro targets from a user profile."""

    @staticmethod
    def calculate_bmr(profile: UserProfile) -> float:
        """
        Basal metabolic rate (Mifflin-St Jeor).

        Args:
            profile: User profile with weight, height, age and sex

        Returns:
            BMR in kcal/day, never negative
        """
        bmr = (
            10 * profile.weight_kg
            + 6.25 * profile.height_cm
            - 5 * profile.age
            + MIFFLIN_SEX_OFFSET[profile.sex]
        )
        return max(0.0, bmr)

    @staticmethod
    def activity_multiplier(sessions_per_week: int) -> float:
        return ACTIVITY_MULTIPLIERS.get(sessions_per_week, DEFAULT_ACTIVITY_MULTIPLIER)

    def calculate_tdee(self, profile: UserProfile) -> float:
        return self.calculate_bmr(profile) * self.activity_multiplier(profile.sessions_per_week)

    def calculate_targets(self, profile: UserProfile) -> NutritionTargets:
        """
        Compute daily targets for the profile's goal.

        Args:
            profile: User profile

        Returns:
            NutritionTargets with kcal and macro grams
        """
        bmr = self.calculate_bmr(profile)
        tdee = bmr * self.activity_multiplier(profile.sessions_per_week)
        goal = profile.fitness_goal

        target_calories = max(0, int(tdee + goal.caloric_adjustment))
        protein_g = profile.weight_kg * goal.protein_multiplier
        fat_kcal = target_calories * FAT_SHARE
        fats_g = fat_kcal / KCAL_PER_G_FAT
        carb_kcal = target_calories - protein_g * KCAL_PER_G_PROTEIN - fat_kcal
        carbs_g = max(0.0, carb_kcal / KCAL_PER_G_CARBS)

        logger.debug(
            "Targets for %s: %d kcal (TDEE %.1f, BMR %.1f)",
            goal.value,
            target_calories,
            tdee,
            bmr,
        )

        return NutritionTargets(
            bmr=round(bmr, 2),
            tdee=round(tdee, 2),
            target_calories=target_calories,
            protein_g=round(protein_g, 1),
            carbs_g=round(carbs_g, 1),
            fats_g=round(fats_g, 1),
        )
