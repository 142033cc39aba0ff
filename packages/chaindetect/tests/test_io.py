"""Tests for reading restaurant exports and writing scan results."""

from pathlib import Path

import pandas as pd
import pytest

from chaindetect.clustering import ChainClusterer
from chaindetect.io import CLUSTER_COLUMNS, read_restaurants, write_clusters
from chaindetect.types import Restaurant


class TestReadRestaurants:
    def test_read_csv(self, tmp_path: Path):
        csv_file = tmp_path / "restaurants.csv"
        csv_file.write_text(
            "id,name,address,city_id,latitude,longitude,chain_id\n"
            "1,Joe's Pizza,7 Carmine St,10,40.7306,-74.0021,\n"
            "2,Joe's Pizza NYC,,11,,,\n"
        )

        restaurants = read_restaurants(csv_file)

        assert [r.id for r in restaurants] == [1, 2]
        assert restaurants[0].name == "Joe's Pizza"
        assert restaurants[0].address == "7 Carmine St"
        assert restaurants[0].city_id == 10
        assert restaurants[0].latitude == pytest.approx(40.7306)
        assert restaurants[0].chain_id is None
        assert restaurants[1].address is None
        assert restaurants[1].latitude is None
        assert restaurants[1].neighborhood_id is None

    def test_rows_without_id_skipped(self, tmp_path: Path):
        csv_file = tmp_path / "restaurants.csv"
        csv_file.write_text("id,name\n1,Joe's Pizza\n,Orphan\n3,Halal Guys\n")

        assert [r.id for r in read_restaurants(csv_file)] == [1, 3]

    def test_missing_columns(self, tmp_path: Path):
        csv_file = tmp_path / "restaurants.csv"
        csv_file.write_text("id,title\n1,Joe's Pizza\n")

        with pytest.raises(ValueError, match="name"):
            read_restaurants(csv_file)

    def test_read_jsonl(self, tmp_path: Path):
        jsonl_file = tmp_path / "restaurants.jsonl"
        jsonl_file.write_text(
            '{"id": 1, "name": "Joe\'s Pizza", "city_id": 10}\n'
            '{"id": 2, "name": "Joe\'s Pizza #2", "city_id": null}\n'
        )

        restaurants = read_restaurants(jsonl_file)

        assert [r.name for r in restaurants] == ["Joe's Pizza", "Joe's Pizza #2"]
        assert restaurants[1].city_id is None


class TestWriteClusters:
    def test_write_csv_one_row_per_member(self, tmp_path: Path):
        restaurants = [
            Restaurant(id=1, name="Joe's Pizza", city_id=10),
            Restaurant(id=2, name="Joe's Pizza NYC", city_id=11),
            Restaurant(id=3, name="Halal Guys", city_id=10),
        ]
        clusters = ChainClusterer().find_clusters(restaurants)
        output = tmp_path / "clusters.csv"

        write_clusters(clusters, output)

        df = pd.read_csv(output)
        assert list(df.columns) == CLUSTER_COLUMNS
        assert df["restaurant_id"].tolist() == [1, 2]
        assert set(df["cluster_rank"]) == {1}
        assert df["suggested_name"].tolist() == ["Joe's Pizza", "Joe's Pizza"]

    def test_write_empty(self, tmp_path: Path):
        output = tmp_path / "clusters.csv"
        write_clusters([], output)

        df = pd.read_csv(output)
        assert list(df.columns) == CLUSTER_COLUMNS
        assert df.empty

    def test_write_jsonl(self, tmp_path: Path):
        restaurants = [Restaurant(id=1, name="Joe's Pizza"), Restaurant(id=2, name="Joe's Pizza")]
        output = tmp_path / "clusters.jsonl"

        write_clusters(ChainClusterer().find_clusters(restaurants), output)

        lines = output.read_text().strip().splitlines()
        assert len(lines) == 2
