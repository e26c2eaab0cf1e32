"""
Unit tests for category endpoints and seeding.
"""
from toolshare import models
from toolshare.seed import CATEGORIES, seed_categories


class TestCategoryListing:
    """Tests for the category endpoints."""

    def test_list_top_level_sorted(self, client, categories):
        """Test all seeded categories are returned alphabetically."""
        response = client.get("/categories")
        assert response.status_code == 200
        names = [c["name"] for c in response.json()]
        assert len(names) == len(CATEGORIES)
        assert names == sorted(names)

    def test_children_not_listed_at_top_level(self, client, db_session, categories):
        """Test subcategories only appear under their parent."""
        parent = categories["power-tools"]
        db_session.add_all([
            models.Category(name="Sanders", slug="sanders", icon="brush", parent_id=parent.id),
            models.Category(name="Drills", slug="drills", icon="screw", parent_id=parent.id),
        ])
        db_session.commit()

        top = client.get("/categories").json()
        assert "drills" not in {c["slug"] for c in top}

        response = client.get(f"/categories/{parent.id}/children")
        assert response.status_code == 200
        children = response.json()
        assert [c["name"] for c in children] == ["Drills", "Sanders"]
        assert all(c["parentId"] == parent.id for c in children)

    def test_children_of_missing_category(self, client):
        """Test asking for children of an unknown category is a 404."""
        response = client.get("/categories/99999/children")
        assert response.status_code == 404


class TestSeeding:
    """Tests for the category seed routine."""

    def test_seed_is_idempotent(self, db_session):
        """Test seeding twice creates each category once."""
        assert seed_categories(db_session) == len(CATEGORIES)
        assert seed_categories(db_session) == 0
        assert db_session.query(models.Category).count() == len(CATEGORIES)

    def test_seed_refreshes_name_and_icon(self, db_session):
        """Test existing rows are matched by slug and updated."""
        db_session.add(models.Category(name="Old Name", slug="plumbing", icon="old"))
        db_session.commit()

        seed_categories(db_session)

        plumbing = db_session.query(models.Category).filter_by(slug="plumbing").one()
        assert plumbing.name == "Plumbing"
        assert plumbing.icon == "pipe-wrench"
