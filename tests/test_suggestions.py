import pytest

from routeweaver.errors import ErrorKind
from routeweaver.models.places import Coordinates, Place, SuggestionMode
from routeweaver.services.suggestions import (
    TARGET_PLACES,
    remove_near_duplicates,
    similar_names,
)
from tests.conftest import KOCHI

FIRST_SET = """Here are waterfalls along the Kochi - Munnar road:

1. **Cheeyappara Waterfalls** (Seven-step waterfall, 2 km from route) [10.0152, 76.8612]
2. **Valara Waterfalls** (Roadside waterfall, 1 km from route) [10.0260, 76.8810]
3. **Attukad Waterfalls** (Waterfall near Munnar town, 5 km from route) [10.0438, 77.0438]
4. **Lakkam Waterfalls** (Forest waterfall, 8 km from route) [10.2264, 77.0322]
"""

SECOND_SET = """
- cheeyappara waterfalls (Same falls again) [10.0152, 76.8612]
- Valara Waterfalls Viewpoint (Lookout over the falls) [10.0300, 76.8900]
- Thommankuthu Waterfalls (Seven tiered falls, 9 km from route) [9.9420, 76.8320]
- Nyayamakad Waterfalls (Tall falls, 6 km from route) [10.0700, 77.0500]
- Power House Waterfalls (Near Chinnakanal, 7 km from route) [10.0587, 77.1640]
"""


def _place(name, lat=10.0, lon=76.5, description=""):
    return Place(name=name, description=description, coordinates=Coordinates(latitude=lat, longitude=lon))


async def test_kochi_to_munnar_has_no_duplicate_names(engine, text_generator):
    text_generator.responses = [FIRST_SET, SECOND_SET]

    result = await engine.suggest_places("Kochi", "Munnar", "waterfalls", SuggestionMode.ALONG_ROUTE)

    names = [p.name.lower() for p in result.primary + result.secondary]
    assert len(names) == len(set(names))
    assert [p.name for p in result.primary] == [
        "Cheeyappara Waterfalls",
        "Valara Waterfalls",
        "Attukad Waterfalls",
        "Lakkam Waterfalls",
    ]
    assert [p.name for p in result.secondary][:3] == [
        "Thommankuthu Waterfalls",
        "Nyayamakad Waterfalls",
        "Power House Waterfalls",
    ]
    assert len(result.primary) + len(result.secondary) == TARGET_PLACES


async def test_second_prompt_excludes_first_names(engine, text_generator):
    text_generator.responses = [FIRST_SET, SECOND_SET]

    await engine.suggest_places("Kochi", "Munnar", "waterfalls", SuggestionMode.ALONG_ROUTE)

    first_prompt, second_prompt = text_generator.prompts
    assert "from Kochi to Munnar" in first_prompt
    assert "waterfalls" in first_prompt
    assert "DIFFERENT from: Cheeyappara Waterfalls, Valara Waterfalls" in second_prompt


async def test_generator_failures_fall_back_to_known_places(engine, text_generator):
    text_generator.responses = [ErrorKind.NETWORK, ErrorKind.TIMEOUT]

    result = await engine.suggest_places("Kochi", "Munnar", None, SuggestionMode.ALONG_ROUTE)

    assert result.primary == []
    assert len(result.secondary) == TARGET_PLACES
    names = [p.name for p in result.secondary]
    assert len(names) == len(set(names))


async def test_fallback_descriptions_carry_distance_when_origin_known(engine, text_generator):
    text_generator.responses = [ErrorKind.EMPTY, ErrorKind.EMPTY]

    result = await engine.suggest_places(
        "Kochi", None, None, SuggestionMode.NEAR_ORIGIN, origin_coordinates=KOCHI,
    )

    fort_kochi = next(p for p in result.secondary if p.name == "Fort Kochi")
    assert "km from Kochi" in fort_kochi.description
    assert fort_kochi.distance_from_origin_km is not None


async def test_near_origin_prompts(engine, text_generator):
    text_generator.responses = [FIRST_SET, SECOND_SET]

    await engine.suggest_places("Kochi", None, None, SuggestionMode.NEAR_ORIGIN)

    assert "within 80km of Kochi" in text_generator.prompts[0]
    assert "between 100km and 1000km" in text_generator.prompts[1]
    assert "Cheeyappara Waterfalls" in text_generator.prompts[1]


async def test_along_route_requires_destination(engine):
    with pytest.raises(ValueError):
        await engine.suggest_places("Kochi", None, None, SuggestionMode.ALONG_ROUTE)


def test_validate_places_clamps_and_drops(engine):
    places = [
        _place("Inside", 10.0, 76.5),
        _place("Slightly North", 13.1, 76.5),
        _place("Far Away", 20.0, 76.5),
        _place("Null Island", 0.0, 0.0),
    ]

    valid = engine.validate_places(places)

    assert [p.name for p in valid] == ["Inside", "Slightly North"]
    assert valid[1].coordinates.latitude == 12.8
    assert valid[1].coordinates.longitude == 76.5


def test_apply_corridor_filters_and_annotates(engine):
    geometry = [(76.2673, 9.9312), (77.0595, 10.0889)]
    near = _place("On The Way", 10.0, 76.6)
    far = _place("Bekal Fort", 12.3917, 75.0327)

    kept = engine.apply_corridor([near, far], geometry)

    assert kept == [near]
    assert near.distance_from_route_km is not None
    assert near.distance_from_route_km < engine.corridor_km


DAY_TRIP = """
- Thattekad Bird Sanctuary (Bird sanctuary, 45 km from Kochi) [10.1017, 76.7431]
- Bhoothathankettu (Dam and forest, 50 km from Kochi) [10.1372, 76.6622]
- Cherai Beach (Beach, 35 km from Kochi) [10.1416, 76.1783]
- Athirappilly Waterfalls (Waterfall, 70 km from Kochi) [10.2850, 76.5696]
- Kumarakom (Backwaters, 65 km from Kochi) [9.6144, 76.4254]
- Vagamon (Meadows, 100 km from Kochi) [9.6867, 76.9344]
- Munnar (Hill station, 130 km from Kochi) [10.0889, 77.0595]
- Guruvayur Temple (Temple town, 20 km from Kochi) [10.5946, 76.0410]
- Marari Beach (Quiet beach) [9.6000, 76.3000]
"""


async def test_day_trip_bucketing_and_rebalancing(engine, text_generator):
    text_generator.responses = [DAY_TRIP]

    trip = await engine.suggest_trip("Kochi", 1)

    assert len(text_generator.prompts) == 1
    assert [p.name for p in trip.short_distance] == [
        "Thattekad Bird Sanctuary", "Bhoothathankettu", "Cherai Beach",
    ]
    assert [p.name for p in trip.medium_distance] == [
        "Athirappilly Waterfalls", "Kumarakom", "Vagamon",
    ]
    assert [p.name for p in trip.long_distance] == ["Munnar", "Guruvayur Temple", "Marari Beach"]


async def test_trip_backup_prompt_and_fallback_fill(engine, text_generator):
    text_generator.responses = [
        "- Athirappilly Waterfalls (Waterfall, 70 km from Kochi) [10.2850, 76.5696]\n"
        "- Hill Palace (Royal museum, 12 km from Kochi) [9.9526, 76.3639]",
        "- Hill Palace (Royal museum) [9.9526, 76.3639]\n"
        "- Marayoor (Sandalwood forests, 170 km from Kochi) [10.2760, 77.1610]\n"
        "- Ponmudi (Hill station, 260 km from Kochi) [8.7596, 77.1170]",
    ]

    trip = await engine.suggest_trip("Kochi", 2)

    assert len(text_generator.prompts) == 2
    assert "at least 10" in text_generator.prompts[1]
    places = trip.all_places()
    names = [p.name for p in places]
    assert len(places) == 10
    assert len(names) == len(set(names))
    assert "Munnar" in names


async def test_trip_mode_through_suggest_places(engine, text_generator):
    text_generator.responses = [DAY_TRIP]

    result = await engine.suggest_places("Kochi", None, None, SuggestionMode.BY_TRIP_DURATION, trip_days=1)

    assert result.secondary == []
    assert len(result.primary) == 9


def test_similar_names():
    assert similar_names("Kovalam Beach", "Kovalam Lighthouse Beach")
    assert similar_names("Marine Drive", "marine drive!")
    assert not similar_names("Varkala Beach", "Kovalam Beach")
    assert not similar_names("Munnar", "Thekkady")


def test_remove_near_duplicates_keeps_first():
    places = [_place("Kovalam Beach"), _place("Kovalam Lighthouse Beach"), _place("Varkala Beach")]

    assert [p.name for p in remove_near_duplicates(places)] == ["Kovalam Beach", "Varkala Beach"]
