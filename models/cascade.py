"""
Ordered deletion plans for the cascading deletes.

A plan is a list of DeleteStep(model, where) run in order against one session.
`where` turns the parent keys (budget ids, group ids, usernames) into a
filter on the step's table. Children always come before their parents so the
foreign keys hold at every statement. The plans never commit; callers run them
inside DBStorage.transaction().
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session as DBSession

from models.account import Account
from models.budget import Budget
from models.category import Category
from models.category_group import CategoryGroup
from models.payee import Payee
from models.session import Session
from models.transaction import Transaction
from models.user import User
from models.verify_email import VerifyEmail


@dataclass(frozen=True)
class DeleteStep:
    model: Any
    where: Callable[[Sequence[str]], Any]

    def run(self, session: DBSession, keys: Sequence[str]) -> int:
        result = session.execute(
            delete(self.model).where(self.where(keys)).execution_options(synchronize_session=False)
        )
        return result.rowcount


@dataclass(frozen=True)
class DeletionPlan:
    steps: tuple[DeleteStep, ...]

    def __add__(self, other: "DeletionPlan") -> "DeletionPlan":
        return DeletionPlan(self.steps + other.steps)

    def execute(self, session: DBSession, keys: Sequence[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        for step in self.steps:
            step.run(session, keys)


def _groups_of_budgets(budget_ids):
    return select(CategoryGroup.id).where(CategoryGroup.budget_id.in_(budget_ids))


def _accounts_of_budgets(budget_ids):
    return select(Account.id).where(Account.budget_id.in_(budget_ids))


CATEGORY_GROUP_PLAN = DeletionPlan((
    DeleteStep(Category, lambda group_ids: Category.category_group_id.in_(group_ids)),
    DeleteStep(CategoryGroup, lambda group_ids: CategoryGroup.id.in_(group_ids)),
))

# Everything a budget owns, leaving the budget row itself
BUDGET_CONTENTS_PLAN = DeletionPlan((
    DeleteStep(Transaction, lambda ids: Transaction.account_id.in_(_accounts_of_budgets(ids))),
    DeleteStep(Payee, lambda ids: Payee.budget_id.in_(ids)),
    DeleteStep(Category, lambda ids: Category.category_group_id.in_(_groups_of_budgets(ids))),
    DeleteStep(CategoryGroup, lambda ids: CategoryGroup.budget_id.in_(ids)),
    DeleteStep(Account, lambda ids: Account.budget_id.in_(ids)),
))

BUDGET_PLAN = BUDGET_CONTENTS_PLAN + DeletionPlan((
    DeleteStep(Budget, lambda ids: Budget.id.in_(ids)),
))

USER_PLAN = DeletionPlan((
    DeleteStep(VerifyEmail, lambda usernames: VerifyEmail.username.in_(usernames)),
    DeleteStep(Session, lambda usernames: Session.username.in_(usernames)),
))

USER_BUDGETS_PLAN = DeletionPlan((
    DeleteStep(Budget, lambda usernames: Budget.owner_username.in_(usernames)),
    DeleteStep(User, lambda usernames: User.username.in_(usernames)),
))


def delete_category_group(session: DBSession, category_group_id: str) -> None:
    CATEGORY_GROUP_PLAN.execute(session, [category_group_id])


def delete_budget(session: DBSession, budget_id: str) -> None:
    BUDGET_PLAN.execute(session, [budget_id])


def delete_user(session: DBSession, username: str, budget_ids: Sequence[str]) -> None:
    """Sessions and verification records, then each budget's contents, then
    the budgets in bulk and finally the user row."""
    USER_PLAN.execute(session, [username])
    for budget_id in budget_ids:
        BUDGET_CONTENTS_PLAN.execute(session, [budget_id])
    USER_BUDGETS_PLAN.execute(session, [username])
