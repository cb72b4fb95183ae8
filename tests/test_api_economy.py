"""
test_api_economy.py - Shop, passive income, bank and leaderboard over HTTP

Tests:
- Profile defaults
- Purchases against the server-side catalog
- Passive income collection (no decay)
- Deposit / withdraw conservation and guards
- Leaderboards
"""

from conftest import register, set_balances, set_progress


def profile(client, player):
    resp = client.get("/user/profile/@me", headers=player["headers"])
    assert resp.status_code == 200
    return resp.json()


class TestProfile:
    def test_new_player_defaults(self, client, player):
        data = profile(client, player)
        assert data["user"]["wallet_balance"] == 1000
        assert data["user"]["bank_balance"] == 0
        assert data["user"]["xp"] == 0
        assert data["user"]["level"] == 1
        assert data["inventory"] == []
        assert data["history"] == []
        assert data["total_passive"] == 0


class TestShop:
    def test_catalog(self, client):
        items = client.get("/shop/items").json()
        assert len(items) == 6
        assert {i["type"] for i in items} == {"housing", "vehicle", "business"}

    def test_purchase_over_budget_changes_nothing(self, client, player):
        resp = client.post("/shop/buy", json={"item_id": "h1"}, headers=player["headers"])
        assert resp.status_code == 422
        data = profile(client, player)
        assert data["user"]["wallet_balance"] == 1000
        assert data["inventory"] == []

    def test_purchase_debits_exact_price(self, client, player, db_path):
        set_balances(db_path, player["id"], wallet=60000)
        resp = client.post("/shop/buy", json={"item_id": "c1"}, headers=player["headers"])
        assert resp.status_code == 200
        assert resp.json()["wallet_balance"] == 40000
        data = profile(client, player)
        assert data["user"]["wallet_balance"] == 40000
        assert [i["item_id"] for i in data["inventory"]] == ["c1"]

    def test_purchase_at_exact_balance(self, client, player, db_path):
        set_balances(db_path, player["id"], wallet=20000)
        resp = client.post("/shop/buy", json={"item_id": "c1"}, headers=player["headers"])
        assert resp.status_code == 200
        assert resp.json()["wallet_balance"] == 0

    def test_unknown_item(self, client, player):
        resp = client.post("/shop/buy", json={"item_id": "zz"}, headers=player["headers"])
        assert resp.status_code == 404

    def test_buy_requires_login(self, client):
        assert client.post("/shop/buy", json={"item_id": "c1"}).status_code == 401


class TestPassiveIncome:
    def test_collect_sums_items_every_call(self, client, player, db_path):
        set_balances(db_path, player["id"], wallet=150000)
        for item_id in ("h1", "i1"):
            assert client.post("/shop/buy", json={"item_id": item_id}, headers=player["headers"]).status_code == 200
        assert profile(client, player)["total_passive"] == 600

        first = client.post("/user/collect-income", headers=player["headers"]).json()
        second = client.post("/user/collect-income", headers=player["headers"]).json()
        assert first == {"collected": 600, "wallet_balance": 600}
        assert second == {"collected": 600, "wallet_balance": 1200}

    def test_collect_with_nothing_owned(self, client, player):
        data = client.post("/user/collect-income", headers=player["headers"]).json()
        assert data == {"collected": 0, "wallet_balance": 1000}


class TestBank:
    def test_deposit_and_withdraw_preserve_total(self, client, player):
        resp = client.post("/bank/deposit", json={"amount": 400}, headers=player["headers"])
        assert resp.json() == {"wallet_balance": 600, "bank_balance": 400}
        resp = client.post("/bank/withdraw", json={"amount": 150}, headers=player["headers"])
        assert resp.json() == {"wallet_balance": 750, "bank_balance": 250}

    def test_deposit_more_than_wallet(self, client, player):
        resp = client.post("/bank/deposit", json={"amount": 1001}, headers=player["headers"])
        assert resp.status_code == 422
        user = profile(client, player)["user"]
        assert (user["wallet_balance"], user["bank_balance"]) == (1000, 0)

    def test_withdraw_more_than_bank(self, client, player):
        client.post("/bank/deposit", json={"amount": 100}, headers=player["headers"])
        resp = client.post("/bank/withdraw", json={"amount": 101}, headers=player["headers"])
        assert resp.status_code == 422
        user = profile(client, player)["user"]
        assert (user["wallet_balance"], user["bank_balance"]) == (900, 100)

    def test_non_positive_amount(self, client, player):
        for amount in (0, -50):
            resp = client.post("/bank/deposit", json={"amount": amount}, headers=player["headers"])
            assert resp.status_code == 422
        user = profile(client, player)["user"]
        assert (user["wallet_balance"], user["bank_balance"]) == (1000, 0)


class TestLeaderboard:
    def test_orders_by_wealth_and_level(self, client, db_path):
        alice = register(client, "alice")
        bob = register(client, "bob")
        set_balances(db_path, alice["id"], wallet=500, bank=100)
        set_balances(db_path, bob["id"], wallet=2000, bank=0)
        set_progress(db_path, alice["id"], level=3, xp=2500)

        board = client.get("/leaderboard").json()
        assert [e["username"] for e in board["top_wealthy"]] == ["bob", "alice"]
        assert board["top_wealthy"][0]["total_wealth"] == 2000
        assert [e["username"] for e in board["top_level"]] == ["alice", "bob"]
