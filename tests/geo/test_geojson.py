import pytest

from field_attendance.core.exceptions import ValidationError
from field_attendance.geo.geojson import polygon_from_geojson, polygon_to_geojson
from field_attendance.geo.model import Coordinate


def test_reads_lon_lat_ring_and_drops_closing_point():
    geometry = {
        "type": "Polygon",
        "coordinates": [[[75.0, 12.0], [75.001, 12.0], [75.001, 12.001], [75.0, 12.0]]],
    }

    polygon = polygon_from_geojson(geometry)

    assert polygon == (Coordinate(12.0, 75.0), Coordinate(12.0, 75.001), Coordinate(12.001, 75.001))


def test_written_ring_is_closed():
    polygon = (Coordinate(12.0, 75.0), Coordinate(12.0, 75.001), Coordinate(12.001, 75.001))

    ring = polygon_to_geojson(polygon)["coordinates"][0]

    assert ring[0] == ring[-1] == [75.0, 12.0]
    assert len(ring) == 4


@pytest.mark.parametrize(
    "geometry",
    [
        None,
        {"type": "Point", "coordinates": [75.0, 12.0]},
        {"type": "Polygon", "coordinates": []},
        {"type": "Polygon", "coordinates": [5]},
        {"type": "Polygon", "coordinates": [None]},
        {"type": "Polygon", "coordinates": ["75,12"]},
        {"type": "Polygon", "coordinates": [["ab", "cd", "ef"]]},
        {"type": "Polygon", "coordinates": [[[75.0]]]},
        {"type": "Polygon", "coordinates": [[[200.0, 12.0], [75.0, 12.0], [75.0, 13.0]]]},
    ],
)
def test_malformed_geometry_is_rejected(geometry):
    with pytest.raises(ValidationError):
        polygon_from_geojson(geometry)
