"""Tests for the flask CLI command groups."""

from storebooks.models import Client, Page, Store, SystemRole, User


class TestSystemCommands:

    def test_init_bootstraps_client_and_super_admin(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "system", "init",
            "--client", "Acme Corp",
            "--admin-username", "owner",
            "--admin-email", "owner@acme.test",
            "--admin-password", "Password123!",
        ])

        assert result.exit_code == 0, result.output
        assert "PASS Created super admin: owner" in result.output
        client = Client.query.filter_by(name="Acme Corp").one()
        user = User.query.filter_by(username="owner").one()
        assert user.client_id == client.id
        assert user.role == "super_admin"
        assert Page.query.count() > 0
        assert SystemRole.query.count() == 3

    def test_init_twice_reuses_client(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=["system", "init", "--client", "Acme Corp"])
        result = runner.invoke(args=["system", "init", "--client", "Acme Corp"])
        assert "Using existing client" in result.output
        assert Client.query.filter_by(name="Acme Corp").count() == 1

    def test_seed_access(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["system", "seed-access"])
        assert result.exit_code == 0
        assert "roles" in result.output


class TestManagementCommands:

    def test_create_store_and_user(self, app, db_session, tenant_a):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["stores", "create", "--client-id", str(tenant_a.id), "--name", "Kiosk"])
        assert "PASS Created store: Kiosk" in result.output
        store = Store.query.filter_by(name="Kiosk").one()

        result = runner.invoke(args=[
            "users", "create",
            "--client-id", str(tenant_a.id),
            "--username", "clerk",
            "--email", "clerk@acme.test",
            "--password", "Password123!",
            "--store-id", str(store.id),
        ])
        assert "PASS Created user: clerk" in result.output
        assert User.query.filter_by(username="clerk").one().store_id == store.id

    def test_duplicate_store_refused(self, app, db_session, store_a):
        result = app.test_cli_runner().invoke(
            args=["stores", "create", "--client-id", str(store_a.client_id), "--name", store_a.name]
        )
        assert "FAIL" in result.output

    def test_weak_password_refused(self, app, db_session, tenant_a):
        result = app.test_cli_runner().invoke(args=[
            "users", "create",
            "--client-id", str(tenant_a.id),
            "--username", "weak",
            "--email", "weak@acme.test",
            "--password", "weak",
        ])
        assert "FAIL" in result.output
        assert User.query.filter_by(username="weak").count() == 0

    def test_list_clients(self, app, db_session, tenant_a, tenant_b):
        result = app.test_cli_runner().invoke(args=["clients", "list"])
        assert "Acme Corp" in result.output
        assert "Beta Inc" in result.output
