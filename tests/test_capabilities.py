from govee_lan_protocol import LAN_MODELS, LanCapabilityList


def test_default_list_contains_known_models() -> None:
    capabilities = LanCapabilityList()

    assert len(capabilities) == len(set(LAN_MODELS))
    assert capabilities.supports_lan("H6159")
    assert not capabilities.supports_lan("H5075")


def test_lookup_is_case_insensitive() -> None:
    capabilities = LanCapabilityList()

    assert "h619a" in capabilities
    assert capabilities.canonical_model("h619a") == "H619A"


def test_extra_models_are_added() -> None:
    capabilities = LanCapabilityList(models=["H6159"], extra_models=["H6099"])

    assert sorted(capabilities) == ["H6099", "H6159"]
