"""Generation models - request/response shapes of the itinerary generator.

The generator is an external service. Its failure diagnostics are carried
through unchanged for display; nothing here interprets them.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from tripcore.app.models.itinerary import ItineraryItem

TravelCompanion = Literal["Solo", "Partner", "Friends", "Family", "Any"]
ExploreTime = Literal["Daytime", "Nighttime", "Both"]
BudgetTier = Literal["Free", "Budget-friendly", "Mid-range", "Premium"]
ActivityIntensity = Literal["Low", "Moderate", "High"]
TravelDistance = Literal["Nearby", "Moderate", "Far"]


class GenerationRequest(BaseModel):
    """Preference criteria sent to the generator."""

    traveler_id: int | None = None
    city: str
    start_date: date
    end_date: date
    experience_types: list[str] = Field(default_factory=list)
    travel_companion: TravelCompanion | None = None
    explore_time: ExploreTime | None = None
    budget: BudgetTier | None = None
    activity_intensity: ActivityIntensity | None = None
    travel_distance: TravelDistance | None = None
    title: str | None = None
    notes: str | None = None


class GeneratedItinerary(BaseModel):
    """Candidate itinerary returned by the generator."""

    model_config = ConfigDict(extra="ignore")

    itinerary_id: int | None = None
    start_date: date
    end_date: date
    title: str | None = None
    notes: str | None = None
    items: list[ItineraryItem] = Field(default_factory=list)


class FilterBreakdown(BaseModel):
    """How many candidates survived each filtering stage."""

    model_config = ConfigDict(extra="allow")

    after_travel_companion: int | None = None
    after_budget: int | None = None
    after_distance: int | None = None
    after_availability: int | None = None


class NearbyCity(BaseModel):
    city: str
    experience_count: int


class PopularExperience(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    price: float | None = None
    travel_companion: str | None = None
    travel_companions: list[str] = Field(default_factory=list)
    popularity: float | None = None


class AlternativeOptions(BaseModel):
    nearby_cities: list[NearbyCity] = Field(default_factory=list)
    popular_experiences: list[PopularExperience] = Field(default_factory=list)


class GenerationDiagnostics(BaseModel):
    """Funnel counts and relaxation hints for a no-results outcome."""

    model_config = ConfigDict(extra="ignore")

    total_experiences_in_city: int | None = None
    filter_breakdown: FilterBreakdown | None = None
    suggestions: list[str] = Field(default_factory=list)
    conflicting_preferences: list[str] = Field(default_factory=list)
    alternative_options: AlternativeOptions | None = None


class GenerationFailure(BaseModel):
    """Expected, recoverable outcome when the generator finds nothing."""

    model_config = ConfigDict(extra="ignore")

    error: str = "no_results"
    message: str = "No itinerary could be generated"
    details: GenerationDiagnostics | None = None
