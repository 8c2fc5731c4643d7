import generate_mock_csv


def test_generate_location_csvs(monkeypatch, capsys):
    calls = []

    def fake_generate(location_name, months):
        calls.append((location_name, months))
        return [f"mock_data/{location_name}_2024-0{idx + 1}.csv" for idx in range(months)]

    monkeypatch.setattr(generate_mock_csv, "generate_mock_months", fake_generate)

    paths = generate_mock_csv.generate_location_csvs("Columbus", months=2)

    assert calls == [("Columbus", 2)]
    assert paths == ["mock_data/Columbus_2024-01.csv", "mock_data/Columbus_2024-02.csv"]
    assert "Columbus_2024-02.csv" in capsys.readouterr().out


def test_generate_all_location_csvs(monkeypatch):
    seen = []
    monkeypatch.setattr(generate_mock_csv, "generate_mock_months", lambda name, months: seen.append(name) or [])

    generate_mock_csv.generate_all_location_csvs()

    assert seen == generate_mock_csv.DEFAULT_LOCATIONS
