from hubspot_mcp.core.response_enhancer import (
    ResponseEnhancer,
    SuggestionConfig,
    default_enhancer,
    enhance_response,
)


def make_enhancer(parameter=None, operation=None, domain=None, limit=5):
    return ResponseEnhancer(SuggestionConfig.from_tables(parameter, operation, domain), limit)


def test_parameter_suggestion_is_added():
    enhancer = make_enhancer(parameter={"ownerId": ["searchOwners"]})
    result = {"a": 1}

    enhanced = enhancer.enhance(result, "update", {"ownerId": "5"})

    assert enhanced == {"a": 1, "suggestions": ["searchOwners"]}
    assert result == {"a": 1}


def test_no_suggestions_returns_the_same_object():
    enhancer = make_enhancer(parameter={"ownerId": ["searchOwners"]})
    result = {"a": 1}

    enhanced = enhancer.enhance(result, "get", {"dealId": "7"})

    assert enhanced is result
    assert "suggestions" not in enhanced


def test_order_dedup_and_cap():
    enhancer = make_enhancer(
        parameter={"contact_id": ["p1", "shared"], "deal_id": ["p2"]},
        operation={"update": ["shared", "o1", "o2"]},
        domain={"Deals": ["d1", "d2"]},
    )

    suggestions = enhancer.suggestions_for(
        "update", {"contact_id": "1", "deal_id": "2"}, "Deals"
    )

    assert suggestions == ["p1", "shared", "p2", "o1", "o2"]


def test_domain_suggestions_follow_operation():
    enhancer = make_enhancer(operation={"create": ["o1"]}, domain={"Notes": ["d1"]})
    assert enhancer.suggestions_for("create", {}, "Notes") == ["o1", "d1"]
    assert enhancer.suggestions_for("create", {}, None) == ["o1"]


def test_non_mapping_results_are_untouched():
    enhancer = make_enhancer(operation={"list": ["o1"]})
    results = [{"id": "1"}]
    assert enhancer.enhance(results, "list", {}) is results


def test_config_tables_are_read_only():
    config = SuggestionConfig.from_tables(parameter={"deal_id": ["x"]})
    assert config.parameter["deal_id"] == ("x",)
    try:
        config.parameter["deal_id"] = ("y",)
    except TypeError:
        pass
    else:
        raise AssertionError("suggestion tables must not be writable")


def test_default_tables_reference_real_tools(registry):
    enhancer = default_enhancer()
    suggestions = enhancer.suggestions_for("createContactNote", {"contact_id": "1"}, "Notes")
    assert 0 < len(suggestions) <= 5
    assert any("search_contacts" in text or "get_contact" in text for text in suggestions)


def test_enhance_response_uses_default_tables():
    enhanced = enhance_response({"deal": {"id": "9"}}, "get", {"deal_id": "9"}, "Deals")

    assert enhanced["deal"] == {"id": "9"}
    assert enhanced["suggestions"][0] == "Find deal: search_deals with the deal name"
    assert len(enhanced["suggestions"]) == len(set(enhanced["suggestions"])) <= 5
