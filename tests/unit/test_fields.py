from notary.extraction.fields import ExtractedFields, extract_fields


class TestExtractFields:
    def test_finds_amounts_dates_and_ibans(self) -> None:
        text = (
            "Invoice dated 2024-03-15, due 2024/04/01.\n"
            "Total 1,250.00 EUR, tax 237.50.\n"
            "Pay to DE89370400440532013000."
        )
        fields = extract_fields(text)
        assert fields.amounts == ["1,250.00", "237.50"]
        assert fields.dates == ["2024-03-15", "2024/04/01"]
        assert fields.ibans == ["DE89370400440532013000"]

    def test_caps_matches_per_kind(self) -> None:
        amounts = " ".join(f"{i}.99" for i in range(10, 20))
        dates = " ".join(f"2024-01-{d:02d}" for d in range(1, 10))
        ibans = " ".join(f"GB{i:02d}NWBK60161331926819" for i in range(10, 16))
        fields = extract_fields(f"{amounts} {dates} {ibans}")
        assert len(fields.amounts) == 5
        assert len(fields.dates) == 5
        assert len(fields.ibans) == 3
        assert fields.amounts[0] == "10.99"

    def test_ignores_out_of_range_dates(self) -> None:
        assert extract_fields("1999-01-01 2024-13-01").dates == []

    def test_empty_text_gives_empty_fields(self) -> None:
        assert extract_fields("") == ExtractedFields()

    def test_to_dict(self) -> None:
        fields = ExtractedFields(amounts=["1.00"], dates=[], ibans=["X"])
        assert fields.to_dict() == {"amounts": ["1.00"], "dates": [], "ibans": ["X"]}
