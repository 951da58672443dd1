from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from .balances import group_balance, individual_balances, overall_balances
from .config import config
from .demo import demo_store
from .models import User
from .money import as_float
from .settlement import debts_owed_from, debts_owed_to, net_settlement
from .simplify import compute_balances, simplify_debts
from .store import ExpenseStore
from .validation import ValidationError, parse_expense_draft, parse_settlement_requests

logger = logging.getLogger(__name__)


def create_app(store: Optional[ExpenseStore] = None) -> Flask:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)

    CORS(app, resources={r"/api/*": {"origins": config.CORS_ORIGINS}})

    if store is None:
        store = _default_store()

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        logger.info("Rejected request to %s: %s", request.path, exc.code)
        return jsonify({"error": exc.code}), 400

    register_routes(app, store)
    return app


def _default_store() -> ExpenseStore:
    if config.SEED_DEMO_DATA:
        return demo_store()
    return ExpenseStore(current_user=User(id="user-1", name=config.CURRENT_USER_NAME))


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("invalid_payload")
    return payload


def _balance_map(balances: Dict[str, Any]) -> Dict[str, float]:
    return {user_id: as_float(amount) for user_id, amount in balances.items()}


def register_routes(app: Flask, store: ExpenseStore) -> None:
    def other_user_or_none(user_id: str) -> Optional[User]:
        if user_id == store.current_user.id:
            return None
        return store.find_user(user_id)

    @app.get("/api")
    def health_check():
        return jsonify({"status": "healthy"})

    @app.get("/api/session")
    def get_session():
        return jsonify({"user": store.current_user.to_dict()})

    @app.get("/api/users")
    def list_users():
        return jsonify([user.to_dict() for user in store.users])

    @app.post("/api/users")
    def add_user():
        name = (_json_body().get("name") or "").strip()
        if not name:
            raise ValidationError("missing_fields")
        user = store.add_user(name)
        return jsonify(user.to_dict()), 201

    @app.patch("/api/me")
    def update_profile():
        payload = _json_body()
        changes = {}
        if "name" in payload:
            name = (payload.get("name") or "").strip()
            if not name:
                raise ValidationError("missing_fields")
            changes["name"] = name
        if "avatarUrl" in payload:
            changes["avatar_url"] = payload.get("avatarUrl") or None
        if "paymentMessage" in payload:
            changes["payment_message"] = payload.get("paymentMessage")
        user = store.update_current_user(**changes)
        return jsonify(user.to_dict())

    @app.get("/api/groups")
    def list_groups():
        expenses = store.expenses
        groups = []
        for group in store.groups:
            data = group.to_dict()
            data["balance"] = as_float(group_balance(store.current_user, group, expenses))
            groups.append(data)
        return jsonify(groups)

    @app.post("/api/groups")
    def create_group():
        payload = _json_body()
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValidationError("missing_group_name")

        member_ids = payload.get("memberIds") or []
        if not isinstance(member_ids, list):
            raise ValidationError("invalid_payload")
        members = []
        for member_id in member_ids:
            member = store.find_user(str(member_id))
            if member is None:
                raise ValidationError("unknown_user")
            members.append(member)

        group = store.create_group(name, members)
        return jsonify(group.to_dict()), 201

    @app.get("/api/groups/<group_id>")
    def get_group(group_id: str):
        group = store.find_group(group_id)
        if group is None:
            return jsonify({"error": "group_not_found"}), 404

        expenses = store.group_expenses(group_id)
        data = group.to_dict()
        data["balances"] = _balance_map(compute_balances(group.members, expenses))
        data["debts"] = [debt.to_dict() for debt in simplify_debts(group.members, expenses)]
        return jsonify(data)

    @app.get("/api/groups/<group_id>/expenses")
    def get_group_expenses(group_id: str):
        if store.find_group(group_id) is None:
            return jsonify({"error": "group_not_found"}), 404
        expenses = sorted(store.group_expenses(group_id), key=lambda e: e.date, reverse=True)
        return jsonify([expense.to_dict() for expense in expenses])

    @app.get("/api/expenses/individual")
    def get_individual_expenses():
        expenses = sorted(store.individual_expenses(), key=lambda e: e.date, reverse=True)
        return jsonify([expense.to_dict() for expense in expenses])

    @app.post("/api/expenses")
    def add_expense():
        draft = parse_expense_draft(
            _json_body(),
            store.find_user,
            store.find_group,
            default_payer=store.current_user,
            default_date=store.now(),
        )
        expense = store.add_expense(draft)
        return jsonify(expense.to_dict()), 201

    @app.put("/api/expenses/<expense_id>")
    def update_expense(expense_id: str):
        original = store.find_expense(expense_id)
        if original is None:
            return jsonify({"error": "expense_not_found"}), 404
        if original.is_settlement:
            raise ValidationError("settlement_not_editable")

        draft = parse_expense_draft(
            _json_body(),
            store.find_user,
            store.find_group,
            default_payer=original.paid_by,
            default_date=original.date,
        )
        expense = store.update_expense(expense_id, draft)
        return jsonify(expense.to_dict())

    @app.get("/api/expenses/<expense_id>/history")
    def get_expense_history(expense_id: str):
        expense = store.find_expense(expense_id)
        if expense is None:
            return jsonify({"error": "expense_not_found"}), 404
        return jsonify([entry.to_dict() for entry in expense.history])

    @app.get("/api/balances")
    def get_balances():
        current_user = store.current_user
        users, groups, expenses = store.users, store.groups, store.expenses
        return jsonify(
            {
                "overall": _balance_map(overall_balances(current_user, users, groups, expenses)),
                "individual": _balance_map(individual_balances(current_user, users, expenses)),
            }
        )

    @app.get("/api/settle/<user_id>")
    def get_settlement(user_id: str):
        other = other_user_or_none(user_id)
        if other is None:
            return jsonify({"error": "user_not_found"}), 404

        current_user, groups, expenses = store.current_user, store.groups, store.expenses
        return jsonify(
            {
                "user": other.to_dict(),
                "net": net_settlement(current_user, other, groups, expenses).to_dict(),
                "owedTo": debts_owed_to(current_user, other, groups, expenses).to_dict(),
                "owedFrom": debts_owed_from(current_user, other, groups, expenses).to_dict(),
            }
        )

    @app.post("/api/settle/<user_id>")
    def settle_up(user_id: str):
        other = other_user_or_none(user_id)
        if other is None:
            return jsonify({"error": "user_not_found"}), 404

        payload = _json_body()
        mode = payload.get("mode", "net")
        if mode == "net":
            recorded = store.settle_net(other)
        elif mode == "individual":
            requests = parse_settlement_requests(
                payload.get("settlements"),
                store.find_group,
                payer=store.current_user,
                payee=other,
            )
            recorded = store.record_settlement(other, requests)
        else:
            raise ValidationError("invalid_mode")

        return jsonify([expense.to_dict() for expense in recorded]), 201

    @app.get("/api/activity")
    def get_activity():
        return jsonify([expense.to_dict() for expense in store.settlement_activity()])


app = create_app()


if __name__ == "__main__":
    app.run(debug=True)
