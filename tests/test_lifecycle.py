"""Unit tests for the lifecycle state registry and the fetch-then-assert lookup."""

import unittest

from crm_identity.core.errors import NotFoundError
from crm_identity.models import AuthRole, Credential, LifecycleState, Role
from crm_identity.services.bootstrap import seed_reference_data
from crm_identity.services.lifecycle import (
    effective_state_id,
    exclude_eliminated,
    find_by_id_and_state_id,
    find_state_by_id,
    find_state_by_name,
    get_eliminated_state,
    list_states,
)

from db_helpers import ACTIVE, ELIMINATED, INACTIVE, add_credential, make_engine, make_session_factory


class LifecycleTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.session = make_session_factory(self.engine)()

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()


class TestStateRegistry(LifecycleTestCase):
    def test_seeded_states_in_id_order(self) -> None:
        names = [s.name for s in list_states(self.session)]
        self.assertEqual(names, ["ACTIVE", "INACTIVE", "PENDING", "ELIMINATED"])

    def test_find_state_by_id_and_name(self) -> None:
        self.assertEqual(find_state_by_id(self.session, ACTIVE).name, "ACTIVE")
        self.assertEqual(find_state_by_name(self.session, "INACTIVE").id, INACTIVE)

    def test_unknown_state_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            find_state_by_id(self.session, 99)
        self.assertIn("99", ctx.exception.message)
        with self.assertRaises(NotFoundError):
            find_state_by_name(self.session, "ARCHIVED")

    def test_eliminated_singleton(self) -> None:
        state = get_eliminated_state(self.session)
        self.assertEqual(state.id, ELIMINATED)
        self.assertEqual(state.name, "ELIMINATED")

    def test_effective_state_id_defaults_to_active(self) -> None:
        self.assertEqual(effective_state_id(None), ACTIVE)
        self.assertEqual(effective_state_id(INACTIVE), INACTIVE)

    def test_seeding_is_idempotent(self) -> None:
        self.assertEqual(seed_reference_data(self.session), (0, 0))
        self.assertEqual(self.session.query(LifecycleState).count(), 4)
        self.assertEqual(self.session.query(Role).count(), 2)


class TestFindByIdAndStateId(LifecycleTestCase):
    """Lookup by id first, then compare state; a mismatch is NotFound."""

    def setUp(self) -> None:
        super().setUp()
        self.credential = add_credential(self.session, state_id=INACTIVE)

    def test_matching_state_returns_entity(self) -> None:
        found = find_by_id_and_state_id(self.session, Credential, self.credential.id, INACTIVE)
        self.assertEqual(found.id, self.credential.id)

    def test_default_state_is_active(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            find_by_id_and_state_id(self.session, Credential, self.credential.id)
        self.assertIn(f"state ID {ACTIVE}", ctx.exception.message)

    def test_missing_id_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            find_by_id_and_state_id(self.session, Credential, 12345, INACTIVE)
        self.assertIn("12345", ctx.exception.message)

    def test_eliminated_row_fetched_by_passing_eliminated_id(self) -> None:
        self.credential.state_id = ELIMINATED
        self.session.commit()
        found = find_by_id_and_state_id(self.session, Credential, self.credential.id, ELIMINATED)
        self.assertEqual(found.state_id, ELIMINATED)


class TestExcludeEliminated(LifecycleTestCase):
    def test_only_eliminated_rows_are_dropped(self) -> None:
        credential = add_credential(self.session)
        for role_id, state_id in ((1, ACTIVE), (2, INACTIVE), (2, ELIMINATED)):
            self.session.add(AuthRole(auth_id=credential.id, role_id=role_id, state_id=state_id))
            self.session.commit()
        rows = exclude_eliminated(self.session.query(AuthRole), AuthRole).all()
        self.assertEqual(sorted(r.state_id for r in rows), [ACTIVE, INACTIVE])


if __name__ == "__main__":
    unittest.main()
