from fastapi.testclient import TestClient

DYNAMIC_URL = "/api/search/dynamic"
ANALYZE_URL = "/api/search/analyze"


def titles(response) -> list[str]:
    return [listing["title"] for listing in response.json()["listings"]]


def test_car_search(api_client: TestClient):
    response = api_client.post(DYNAMIC_URL, json={"type": "carSearch", "params": {"make": "Toyota"}})

    assert response.status_code == 200
    data = response.json()

    assert titles(response) == ["Lifted Tacoma", "Turbocharged Supra"]
    assert data["query"] == {"type": "carSearch", "params": {"make": "Toyota"}, "optimized": True}
    assert data["pagination"] is None
    assert data["analytics"] is None


def test_listings_include_images_and_modifications(api_client: TestClient):
    response = api_client.post(DYNAMIC_URL, json={"params": {"searchTerm": "turbo"}})

    assert response.status_code == 200
    listing = response.json()["listings"][0]

    assert listing["title"] == "Turbocharged Supra"
    assert {image["image_url"] for image in listing["listing_images"]} == {
        "https://img.example.com/supra-1.jpg",
        "https://img.example.com/supra-2.jpg",
    }
    assert {modification["category"] for modification in listing["modifications"]} == {"engine", "suspension"}


def test_pagination_and_analytics(api_client: TestClient):
    response = api_client.post(
        DYNAMIC_URL,
        json={"type": "carSearch", "params": {"page": 1, "limit": 3}, "includeAnalytics": True},
    )

    assert response.status_code == 200
    data = response.json()

    assert len(data["listings"]) == 3
    assert data["pagination"] == {
        "page": 1,
        "limit": 3,
        "totalItems": 4,
        "totalPages": 2,
        "hasNextPage": True,
        "hasPrevPage": False,
    }

    analytics = data["analytics"]
    assert analytics["resultCount"] == 3
    assert analytics["totalCount"] == 4
    assert analytics["validation"]["isValid"] is True
    assert analytics["complexity"]["score"] == 0
    assert "Index on 'created_at' for sorting" in analytics["indexSuggestions"]


def test_modification_search(api_client: TestClient):
    response = api_client.post(
        DYNAMIC_URL,
        json={"type": "modificationSearch", "params": {"categories": ["suspension"]}},
    )

    assert response.status_code == 200
    assert set(titles(response)) == {"Lifted Tacoma", "Turbocharged Supra"}


def test_advanced_search(api_client: TestClient):
    response = api_client.post(
        DYNAMIC_URL,
        json={
            "type": "advancedSearch",
            "params": {
                "mustHave": {"transmission": "manual"},
                "mustNot": {"make": ["Mazda"]},
                "sorting": [{"field": "price", "order": "asc"}],
            },
        },
    )

    assert response.status_code == 200
    assert titles(response) == ["Clean Civic Type R", "Turbocharged Supra"]


def test_price_analysis(api_client: TestClient):
    response = api_client.post(DYNAMIC_URL, json={"type": "priceAnalysis", "params": {"make": "toyota"}})

    assert response.status_code == 200
    assert titles(response) == ["Turbocharged Supra", "Lifted Tacoma"]


def test_location_search(api_client: TestClient):
    response = api_client.post(DYNAMIC_URL, json={"type": "locationSearch", "params": {"state": "TX"}})

    assert response.status_code == 200
    assert titles(response) == ["Clean Civic Type R"]


def test_unknown_type_falls_back_to_car_search(api_client: TestClient):
    response = api_client.post(DYNAMIC_URL, json={"type": "somethingElse", "params": {"make": "Honda"}})

    assert response.status_code == 200
    assert titles(response) == ["Clean Civic Type R"]


def test_custom_query(api_client: TestClient):
    response = api_client.post(
        DYNAMIC_URL,
        json={
            "customQuery": {
                "conditions": [
                    {"field": "make", "operator": "eq", "value": "Toyota"},
                    {"field": "make", "operator": "eq", "value": "Honda"},
                    {"field": "make", "operator": "eq", "value": "Mazda"},
                ],
                "sorting": [{"field": "year", "order": "desc"}],
            },
        },
    )

    assert response.status_code == 200
    assert titles(response) == ["Clean Civic Type R", "Lifted Tacoma", "Stock Miata", "Turbocharged Supra"]


def test_custom_query_without_optimizing(api_client: TestClient):
    response = api_client.post(
        DYNAMIC_URL,
        json={
            "customQuery": {
                "conditions": [
                    {"field": "make", "operator": "eq", "value": "Toyota"},
                    {"field": "make", "operator": "eq", "value": "Honda"},
                    {"field": "make", "operator": "eq", "value": "Mazda"},
                ],
            },
            "optimize": False,
        },
    )

    assert response.status_code == 200
    assert response.json()["listings"] == []
    assert response.json()["query"]["optimized"] is False


def test_highlights(api_client: TestClient):
    response = api_client.post(
        DYNAMIC_URL,
        json={"params": {"searchTerm": "turbo"}, "includeHighlights": True},
    )

    assert response.status_code == 200
    highlights = response.json()["highlights"]

    assert len(highlights) == 1
    title = highlights[0]["title"]
    assert title[0] == {"text": "Turbo", "highlighted": True, "relevance": 1.0}
    assert "".join(segment["text"] for segment in title) == "Turbocharged Supra"


def test_invalid_custom_query(api_client: TestClient):
    response = api_client.post(
        DYNAMIC_URL,
        json={"customQuery": {"conditions": [{"field": "horsepower", "operator": "gt", "value": 300}]}},
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "The search query is invalid"
    assert detail["error"] is True
    assert detail["errors"] == ["Condition 1: unknown field 'horsepower'"]


def test_invalid_params(api_client: TestClient):
    response = api_client.post(DYNAMIC_URL, json={"type": "carSearch", "params": {"yearRange": "recent"}})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Invalid search parameters"
    assert detail["errors"]


def test_invalid_pagination(api_client: TestClient):
    response = api_client.post(DYNAMIC_URL, json={"params": {"page": 1, "limit": 500}})

    assert response.status_code == 400
    assert "Limit must be between 1 and 100" in response.json()["detail"]["errors"]


def test_get_search(api_client: TestClient):
    response = api_client.get(DYNAMIC_URL, params={"make": "Toyota,Honda", "yearFrom": 2010, "sortBy": "price_low"})

    assert response.status_code == 200
    data = response.json()

    assert titles(response) == ["Lifted Tacoma", "Clean Civic Type R"]
    assert data["query"]["params"]["yearRange"] == {"min": 2010, "max": None}
    assert data["pagination"]["totalItems"] == 2


def test_get_search_with_text_and_modifications(api_client: TestClient):
    response = api_client.get(DYNAMIC_URL, params={"q": "kit", "hasModifications": True, "analytics": True})

    assert response.status_code == 200
    assert titles(response) == ["Lifted Tacoma"]
    assert response.json()["analytics"]["complexity"]["score"] == 2.5


def test_analyze(api_client: TestClient):
    response = api_client.post(
        ANALYZE_URL,
        json={
            "conditions": [
                {"field": "make", "operator": "eq", "value": "Toyota"},
                {"field": "make", "operator": "eq", "value": "Honda"},
                {"field": "make", "operator": "eq", "value": "Mazda"},
            ],
            "pagination": {"page": 150, "limit": 50},
        },
    )

    assert response.status_code == 200
    data = response.json()

    assert data["validation"]["isValid"] is True
    assert data["complexity"]["score"] == 3.5
    assert data["indexSuggestions"] == ["Index on 'make' for filtering"]

    optimized = data["optimizedQuery"]
    assert optimized["conditions"] == [
        {"field": "make", "operator": "in", "value": ["Toyota", "Honda", "Mazda"], "logic": None}
    ]
    assert optimized["pagination"] == {"page": 150, "limit": 10}

    assert data["analysis"]["hasOptimizations"] is True
    assert data["analysis"]["isValid"] is True
    assert data["analysis"]["warningCount"] == 2


def test_analyze_invalid_query(api_client: TestClient):
    response = api_client.post(
        ANALYZE_URL,
        json={"textSearch": {"query": ""}, "joins": [{"table": "owners", "select": ["name"]}]},
    )

    assert response.status_code == 200
    data = response.json()

    assert data["validation"]["isValid"] is False
    assert data["validation"]["errors"] == ["Text search query cannot be empty", "Join 1: unknown table 'owners'"]
    assert data["analysis"]["hasOptimizations"] is False
