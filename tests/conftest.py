"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Any

import pytest
import structlog

WEEK_HOURS = {
    day: {"attr": {"Open": "09:00 - 22:00"}}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
}


@pytest.fixture(autouse=True)
def reset_structlog() -> Any:
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def airport_branch_fields() -> dict[str, Any]:
    """Normalized fields of the reference airport branch."""
    return {
        "branchCode": "BR001",
        "name": "Airport Branch",
        "atAirport": True,
        "latitude": 53.3656,
        "longitude": -2.2729,
        "countryCode": "GB",
    }


@pytest.fixture
def ota_json_payload() -> str:
    """OTA-wrapped JSON response with the reference airport branch."""
    return json.dumps(
        {
            "OTA_VehLocSearchRS": {
                "VehMatchedLocs": [
                    {
                        "VehMatchedLoc": {
                            "LocationDetail": {
                                "attr": {
                                    "Branchcode": "BR001",
                                    "Name": "Airport Branch",
                                    "AtAirport": "true",
                                    "Latitude": "53.3656",
                                    "Longitude": "-2.2729",
                                    "CountryCode": "GB",
                                }
                            }
                        }
                    }
                ]
            }
        }
    )


@pytest.fixture
def ota_xml_payload() -> str:
    """OTA XML response with the reference airport branch."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<OTA_VehLocSearchRS xmlns="http://www.opentravel.org/OTA/2003/05" Version="1.0">
  <VehMatchedLocs>
    <VehMatchedLoc>
      <LocationDetail Branchcode="BR001" Name="Airport Branch" AtAirport="true"
                      Latitude="53.3656" Longitude="-2.2729" CountryCode="GB"/>
    </VehMatchedLoc>
  </VehMatchedLocs>
</OTA_VehLocSearchRS>
"""


@pytest.fixture
def detailed_ota_json() -> dict[str, Any]:
    """OTA JSON location with nested address, telephone and opening hours."""
    return {
        "OTA_VehLocSearchRS": {
            "VehMatchedLocs": [
                {
                    "VehMatchedLoc": {
                        "LocationDetail": {
                            "attr": {
                                "Code": "MANA01",
                                "Name": "Manchester Airport",
                                "AtAirport": "TRUE",
                                "Latitude": "53.3656",
                                "Longitude": "-2.2729",
                            },
                            "Address": {
                                "AddressLine": [{"value": "Terminal 2"}, {"value": "Car Park 3"}],
                                "CityName": {"value": "Manchester"},
                                "PostalCode": {"value": "M90 1QX"},
                                "CountryName": {"value": "United Kingdom", "attr": {"Code": "GB"}},
                            },
                            "Telephone": {"attr": {"PhoneNumber": "+441612345678"}},
                            "Opening": WEEK_HOURS,
                        }
                    }
                }
            ]
        }
    }


@pytest.fixture
def detailed_ota_xml() -> str:
    """XML rendition of ``detailed_ota_json``."""
    days = "".join(
        f'<{day} Open="09:00 - 22:00"/>'
        for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
    )
    return f"""<OTA_VehLocSearchRS xmlns="http://www.opentravel.org/OTA/2003/05">
  <VehMatchedLocs>
    <VehMatchedLoc>
      <LocationDetail Code="MANA01" Name="Manchester Airport" AtAirport="TRUE"
                      Latitude="53.3656" Longitude="-2.2729">
        <Address>
          <AddressLine>Terminal 2</AddressLine>
          <AddressLine>Car Park 3</AddressLine>
          <CityName>Manchester</CityName>
          <PostalCode>M90 1QX</PostalCode>
          <CountryName Code="GB">United Kingdom</CountryName>
        </Address>
        <Telephone PhoneNumber="+441612345678"/>
        <Opening>{days}</Opening>
      </LocationDetail>
    </VehMatchedLoc>
  </VehMatchedLocs>
</OTA_VehLocSearchRS>"""


@pytest.fixture
def php_sample() -> str:
    """Compact var_dump of a single OTA location."""
    return (
        'array(1){["OTA_VehLocSearchRS"]=>array(1){["VehMatchedLocs"]=>array(1){[0]=>'
        'array(1){["VehMatchedLoc"]=>array(1){["LocationDetail"]=>array(1){["attr"]=>'
        'array(2){["Code"]=>string(5)"BR001"["Name"]=>string(6)"Branch"}}}}}}}'
    )


@pytest.fixture
def php_pretty_dump() -> str:
    """Indented var_dump with a comment, two locations and one misdeclared string length."""
    return """array(1) {
  ["OTA_VehLocSearchRS"]=>
  array(1) {
    ["VehMatchedLocs"]=>
    array(2) {
      [0]=>
      array(1) {
        ["VehMatchedLoc"]=>
        array(1) {
          ["LocationDetail"]=>
          array(2) {
            ["attr"]=>
            array(5) {
              ["Code"]=>
              string(6) "LHRT05"
              ["Name"]=>
              string(18) "Heathrow Terminal 5"
              ["AtAirport"]=>
              bool(true)
              ["Latitude"]=>
              float(51.4723)
              ["Longitude"]=>
              float(-0.4901)
            }
            ["Telephone"]=>
            array(1) {
              ["attr"]=>
              array(1) {
                ["PhoneNumber"]=>
                string(13) "+442012345678"
              }
            }
          }
        }
      }
      // ...
      [1]=>
      array(1) {
        ["VehMatchedLoc"]=>
        array(1) {
          ["LocationDetail"]=>
          array(1) {
            ["attr"]=>
            array(3) {
              ["Code"]=>
              string(6) "LONC01"
              ["Name"]=>
              NULL
              ["Status"]=>
              int(1)
            }
          }
        }
      }
    }
  }
}
"""


@pytest.fixture
def end_to_end_csv() -> str:
    """Two-row CSV whose second row lacks a branch code."""
    return "Branchcode,Name\nBR001,Airport Branch\n,City Branch\n"
