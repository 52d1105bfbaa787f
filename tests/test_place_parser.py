from routeweaver.utils.place_parser import DEFAULT_DESCRIPTION, normalize_response, parse_places


def test_name_description_and_coordinates():
    places = parse_places("- Fort Kochi (Colonial quarter, 12 km from route) [9.9658, 76.2421]")

    assert len(places) == 1
    place = places[0]
    assert place.name == "Fort Kochi"
    assert place.description == "Colonial quarter, 12 km from route"
    assert place.coordinates.latitude == 9.9658
    assert place.coordinates.longitude == 76.2421


def test_name_without_description_gets_default():
    places = parse_places("1. **Marine Drive** [9.9770, 76.2773]")

    assert [p.name for p in places] == ["Marine Drive"]
    assert places[0].description == DEFAULT_DESCRIPTION


def test_bullet_glyphs_and_numbering():
    text = "\n".join([
        "Here are some places:",
        "• Hill Palace (Royal museum) [9.9526, 76.3639]",
        "* Cherai Beach (Quiet beach) [10.1416, 76.1783]",
        "3. Mattancherry Palace (Dutch palace) [9.9583, 76.2594]",
    ])

    places = parse_places(text)

    assert [p.name for p in places] == ["Hill Palace", "Cherai Beach", "Mattancherry Palace"]


def test_extra_whitespace_is_ignored():
    places = parse_places("   -   Vembanad Lake   (Largest lake in Kerala)   [9.5916,   76.3947]   ")

    assert len(places) == 1
    assert places[0].name == "Vembanad Lake"
    assert places[0].description == "Largest lake in Kerala"
    assert places[0].coordinates.longitude == 76.3947


def test_negative_coordinates():
    places = parse_places("- Sydney Opera House (Landmark) [-33.8568, 151.2153]")

    assert places[0].coordinates.latitude == -33.8568
    assert places[0].coordinates.longitude == 151.2153


def test_first_valid_bracket_group_wins():
    places = parse_places("- Kumarakom (Backwaters) [191.0, 76.4] [9.6144, 76.4254]")

    assert len(places) == 1
    assert places[0].coordinates.latitude == 9.6144


def test_lines_without_coordinates_are_skipped():
    text = "\n".join([
        "- Fort Kochi (Historic area)",
        "- Marine Drive (Promenade) [9.9770, 76.2773]",
        "- Jew Town (Antique shops) [not, known]",
    ])

    assert [p.name for p in parse_places(text)] == ["Marine Drive"]


def test_no_coordinates_anywhere_returns_empty():
    text = "I could not find any attractions.\n- Fort Kochi (Historic)\n- Munnar (Hills)"

    assert parse_places(text) == []


def test_empty_input_returns_empty():
    assert parse_places("") == []
    assert parse_places(None) == []


def test_loose_pass_recovers_unmarked_lines_in_order():
    text = "\n".join([
        "Athirappilly Falls [10.2850, 76.5696]",
        "- Fort Kochi (Historic) [9.9658, 76.2421]",
    ])

    places = parse_places(text)

    assert [p.name for p in places] == ["Athirappilly Falls", "Fort Kochi"]
    assert places[0].description == DEFAULT_DESCRIPTION
    assert places[1].description == "Historic"


def test_loose_pass_skipped_when_enough_strict_matches():
    text = "\n".join([
        "Stray Place [10.0, 76.0]",
        "- A One (x) [9.1, 76.1]",
        "- B Two (y) [9.2, 76.2]",
        "- C Three (z) [9.3, 76.3]",
    ])

    assert [p.name for p in parse_places(text)] == ["A One", "B Two", "C Three"]


def test_nested_parentheses_truncate_description():
    places = parse_places("- Bolgatty Palace (Dutch palace (1744) on an island) [9.9850, 76.2670]")

    assert places[0].name == "Bolgatty Palace"
    assert places[0].description == "Dutch palace (1744"
    assert places[0].coordinates.latitude == 9.985


def test_out_of_range_coordinates_are_rejected():
    assert parse_places("- Nowhere (Invalid) [95.0, 200.0]") == []


def test_normalize_response_strips_markup():
    assert normalize_response("**Bold**\n\n• Item\n") == ["Bold", "- Item"]
