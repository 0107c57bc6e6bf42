"""Integration tests for the portfolio FastAPI application."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from packages.portfolio.api import create_app
from packages.portfolio.config import PortfolioSettings


def test_unknown_route_returns_msg(client):
    response = client.get("/not-a-route")

    assert response.status_code == 404
    assert response.json() == {"msg": "Path not found! :-("}


@pytest.mark.parametrize(
    "method,path",
    [
        ("post", "/api/staff/meta/37704"),
        ("delete", "/api/projects"),
        ("post", "/api/project/22398800"),
        ("put", "/api/keywords/groups"),
    ],
)
def test_wrong_method_returns_405(client, method, path):
    response = getattr(client, method)(path)

    assert response.status_code == 405
    assert response.json() == {"msg": "method not allowed!!!"}


def test_endpoint_map(client):
    body = client.get("/api").json()

    assert "GET /api" in body
    assert "PATCH /api/project/staff/:ProjectCode" in body


def test_info(client):
    info = client.get("/api/info").json()["dbInfo"]

    assert info["Town"]["values"] == ["Glasgow", "Manchester", "Warrington"]
    assert info["GradeLevel"] == {"type": "integer", "values": [5, 6, 7]}


def test_staff_meta_listing_and_filter(client):
    staff = client.get("/api/staff/meta").json()["staffMeta"]
    assert [s["StaffID"] for s in staff] == [29952, 37704, 56876]

    filtered = client.get("/api/staff/meta", params={"GradeLevel": 5}).json()["staffMeta"]
    assert [s["StaffName"] for s in filtered] == ["Jane Doe"]

    bad = client.get("/api/staff/meta", params={"Sam": "Cool"})
    assert bad.status_code == 400
    assert bad.json() == {"msg": "bad request to db!!!"}


def test_single_staff_member(client):
    response = client.get("/api/staff/meta/37704")

    assert response.status_code == 200
    staff = response.json()["staffMeta"]
    assert staff["StartDate"] == "2007-09-05T23:00:00.000Z"
    assert staff["imgURL"] is None
    assert staff["qualifications"] == []

    assert client.get("/api/staff/meta/99999").json() == {"msg": "StaffID not found"}
    assert client.get("/api/staff/meta/samstyles").status_code == 400


def test_patch_staff(client):
    response = client.patch("/api/staff/meta/37704", json={"nationality": "British", "publications": ["Paper"]})

    assert response.status_code == 200
    staff = response.json()["staffMeta"]
    assert staff["nationality"] == "British"
    assert staff["publications"] == ["Paper"]


def test_patch_staff_identifier_is_unprocessable(client):
    response = client.patch("/api/staff/meta/37704", json={"StaffID": 999999})

    assert response.status_code == 422
    assert response.json()["staffMeta"]["StaffID"] == 37704
    assert client.get("/api/staff/meta/37704").status_code == 200


def test_patch_staff_errors(client):
    assert client.patch("/api/staff/meta/99999", json={"nationality": "x"}).status_code == 404
    assert client.patch("/api/staff/meta/samstyles", json={"nationality": "x"}).status_code == 400
    assert client.patch("/api/staff/meta/37704", json={"StaffName": "x"}).status_code == 400


def test_malformed_json_body_is_a_bad_request(client):
    response = client.patch(
        "/api/staff/meta/37704", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json() == {"msg": "bad request to db!!!"}
    assert client.get("/api/staff/meta/37704").json()["staffMeta"]["nationality"] != "{not json"


def test_null_required_booking_fields_are_missing(client):
    response = client.post(
        "/api/project/staff/25397800", params={"StaffID": 37704}, json={"TotalHrs": None, "experience": None}
    )

    assert response.status_code == 404
    assert response.json() == {"msg": "Missing attributes!!!"}


def test_projects_listing(client):
    projects = client.get("/api/projects").json()["projects"]
    assert [p["ProjectCode"] for p in projects] == [22398800, 25397800, 41000200]

    response = client.get("/api/projects", params={"Keywords": "CT0019;BC0001", "KeywordQueryType": "OR"})
    assert [p["ProjectCode"] for p in response.json()["projects"]] == [22398800]

    response = client.get("/api/projects", params={"PercentComplete": "ninety"})
    assert response.status_code == 400


def test_staff_portfolio(client):
    response = client.get("/api/projects/staff", params={"includeConfidential": "true"})

    assert response.status_code == 200
    portfolio = response.json()["staffPortfolio"]
    assert portfolio["projects"] == [22398800, 25397800, 30000100]
    first = portfolio["staffList"][0]
    assert (first["StaffID"], first["TotalHrs"], first["ProjectCount"]) == (37704, 3780.75, 2)


def test_staff_for_projects(client):
    response = client.post("/api/projects/staff", json={"Projects": [22398800]})

    assert response.status_code == 200
    assert response.json() == {
        "staffList": [
            {"StaffID": 37704, "TotalHrs": 3730.75, "ProjectCount": 1},
            {"StaffID": 29952, "TotalHrs": 120.5, "ProjectCount": 1},
        ]
    }

    located = client.post(
        "/api/projects/staff", params={"LocationName": "Manchester Office"}, json={"Projects": [25397800]}
    )
    assert located.json() == {"staffList": []}


@pytest.mark.parametrize("body", [{"Projects": []}, {}])
def test_staff_for_projects_without_projects(client, body):
    response = client.post("/api/projects/staff", json=body)

    assert response.status_code == 400
    assert response.json() == {"msg": "No projects provided!!!"}


def test_staff_projects(client):
    detailed = client.get("/api/projects/staff/37704").json()["projects"]
    assert detailed[0]["ClientName"] == "Muse Developments Ltd"

    basic = client.get("/api/projects/staff/37704", params={"showDetails": "false"}).json()["projects"]
    assert set(basic[0]) == {"experienceID", "ProjectCode", "StaffID", "TotalHrs", "experience"}

    assert client.get("/api/projects/staff/samstyles").status_code == 400
    assert client.get("/api/projects/staff/99999").status_code == 404
    assert client.get("/api/projects/staff/37704", params={"Sam": "Cool"}).status_code == 400


def test_staff_keyword_codes(client):
    response = client.get("/api/projects/keywords/37704")

    assert response.json() == {"keywords": ["AP0054", "BC0001", "CT0019"]}
    assert client.get("/api/projects/keywords/samstyles").status_code == 400


def test_single_project(client):
    project = client.get("/api/project/22398800").json()["project"]
    assert project["EndDate"] == "2020-08-30T11:00:00.000Z"
    assert "TotalHrs" not in project

    booked = client.get("/api/project/22398800", params={"StaffID": 37704}).json()["project"]
    assert booked["TotalHrs"] == 3730.75
    assert booked["experience"] == "Project manager"

    assert client.get("/api/project/22398800", params={"StaffID": 999999}).json() == {"msg": "StaffID not found"}
    assert client.get("/api/project/22398800", params={"StaffID": "samstyles"}).status_code == 400
    assert client.get("/api/project/WBSQ", params={"StaffID": 37704}).status_code == 400
    assert client.get("/api/project/9999999", params={"StaffID": 37704}).json() == {"msg": "ProjectCode not found"}


def test_patch_project(client):
    response = client.patch(
        "/api/project/22398800",
        json={"JobNameLong": "warrington bridge street quarter", "Confidential": True, "imgURL": ["x.png"]},
    )

    assert response.status_code == 200
    project = response.json()["project"]
    assert project["JobNameLong"] == "WARRINGTON BRIDGE STREET QUARTER"
    assert project["Confidential"] is True
    assert project["imgURL"] == []

    # Now confidential, so hidden from listings.
    listed = client.get("/api/projects").json()["projects"]
    assert 22398800 not in [p["ProjectCode"] for p in listed]


def test_patch_project_errors(client):
    assert client.patch("/api/project/9999999", json={"JobNameLong": "x"}).json() == {"msg": "ProjectCode not found"}
    assert client.patch("/api/project/wbsq", json={"JobNameLong": "x"}).status_code == 400
    assert client.patch("/api/project/25397800", json={"ClientName": "x"}).json() == {"msg": "bad request to db!!!"}
    assert client.patch("/api/project/25397800", json={"ProjectCode": 1}).status_code == 422


def test_project_keywords(client):
    assert client.get("/api/project/keywords/22398800").json() == {"keywords": ["AP0054", "BC0001", "CT0019"]}
    assert client.get("/api/project/keywords/WBSQ").status_code == 400
    assert client.get("/api/project/keywords/9999999").status_code == 404


def test_patch_booking(client):
    response = client.patch(
        "/api/project/staff/22398800", params={"StaffID": 37704}, json={"experience": "Worked really hard."}
    )

    assert response.status_code == 200
    project = response.json()["project"]
    assert project["experience"] == "Worked really hard."
    assert project["TotalHrs"] == 3730.75
    assert project["StaffID"] == 37704


@pytest.mark.parametrize(
    "path,params,status,msg",
    [
        ("/api/project/staff/25397800", {}, 404, "No staff id provided!!!"),
        (
            "/api/project/staff/25397800",
            {"StaffID": 37704},
            404,
            "No staff time booked to project - use add experience instead!!!",
        ),
        ("/api/project/staff/25397800", {"StaffID": 99999}, 404, "StaffID not found"),
        ("/api/project/staff/25397800", {"StaffID": "samstyles"}, 400, "bad request to db!!!"),
        ("/api/project/staff/9999999", {"StaffID": 37704}, 404, "ProjectCode not found"),
    ],
)
def test_patch_booking_errors(client, path, params, status, msg):
    response = client.patch(path, params=params, json={"experience": "x"})

    assert response.status_code == status
    assert response.json() == {"msg": msg}


def test_add_booking(client):
    response = client.post(
        "/api/project/staff/25397800",
        params={"StaffID": 37704},
        json={"TotalHrs": 5, "experience": "Checked the bridge drawings."},
    )

    assert response.status_code == 200
    experience = response.json()["experience"]
    assert experience["ProjectCode"] == 25397800
    assert experience["StaffID"] == 37704
    assert experience["TotalHrs"] == 5
    assert isinstance(experience["experienceID"], int)


@pytest.mark.parametrize(
    "path,params,body,status,msg",
    [
        ("/api/project/staff/25397800", {}, {"TotalHrs": 5, "experience": "x"}, 404, "No staff id provided!!!"),
        ("/api/project/staff/25397800", {"StaffID": 37704}, {"TotalHrs": 5}, 404, "Missing attributes!!!"),
        ("/api/project/staff/25397800", {"StaffID": 99999}, {"TotalHrs": 5, "experience": "x"}, 404, "StaffID not found"),
        ("/api/project/staff/999999", {"StaffID": 37704}, {"TotalHrs": 5, "experience": "x"}, 404, "ProjectCode not found"),
        ("/api/project/staff/25397800", {"StaffID": 37704}, {"Hours": 5}, 400, "bad request to db!!!"),
    ],
)
def test_add_booking_errors(client, path, params, body, status, msg):
    response = client.post(path, params=params, json=body)

    assert response.status_code == status
    assert response.json() == {"msg": msg}


def test_keywords(client):
    keywords = client.get("/api/keywords").json()["keywords"]
    assert len(keywords) == 5

    ap_only = client.get("/api/keywords", params={"KeywordGroupCode": "AP"}).json()["keywords"]
    assert [k["Keyword"] for k in ap_only] == ["Value engineering", "Other approach"]

    groups = client.get("/api/keywords/groups").json()["keywordGroups"]
    assert groups[0] == {"KeywordGroupCode": "AP", "KeywordGroupName": "Approach"}

    all_groups = client.get("/api/keywords/allgroups").json()["keywords"]
    assert all_groups["CT"]["KeywordCodes"] == ["CT0019"]


def test_staff_keyword_groups(client):
    response = client.get("/api/keywords/groups/56876", params={"includeConfidential": "true"})

    groups = response.json()["keywords"]
    assert list(groups) == ["AP", "BC", "CT"]
    assert groups["BC"]["KeywordCodes"] == ["BC0018"]

    assert client.get("/api/keywords/groups/samstyles").status_code == 400
    assert client.get("/api/keywords/groups/99999").json() == {"msg": "StaffID not found"}


def test_unhandled_errors_render_500(settings, monkeypatch):
    from packages.portfolio import service as service_module

    def explode(self, params=None):  # type: ignore[no-untyped-def]
        raise RuntimeError("boom")

    monkeypatch.setattr(service_module.PortfolioService, "list_keywords", explode)
    client = TestClient(create_app(settings), raise_server_exceptions=False)

    response = client.get("/api/keywords")

    assert response.status_code == 500
    assert response.json() == {"msg": "Internal server error"}


def test_custom_prefix():
    settings = PortfolioSettings(DATABASE_URL="sqlite+pysqlite:///:memory:", API_PREFIX="/v2/")
    client = TestClient(create_app(settings))

    assert client.get("/v2/keywords").json() == {"keywords": []}
    assert client.get("/api/keywords").status_code == 404
