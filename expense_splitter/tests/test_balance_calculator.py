"""
Unit Tests for the Balance Calculator

Tests cover:
- The documented group scenarios
- Zero-sum and order-independence properties
- Roster handling and unknown members
- Snap-to-zero tolerance
"""

import itertools
import random
import pytest
from decimal import Decimal
from expense_splitter.utils.balance_calculator import (
    compute_balances,
    compute_balances_cents,
    normalize_roster,
    rounding_drift_bound,
    snap_to_zero,
)
from expense_splitter.utils.errors import InvalidRecordError, UnknownMemberError


def expense(payer, amount, participants):
    return {"kind": "expense", "payer": payer, "amount": Decimal(amount), "participants": participants}


def settlement(payer, amount, receiver):
    return {"kind": "settlement", "payer": payer, "amount": Decimal(amount), "participants": [receiver]}


@pytest.mark.unit
class TestScenarios:

    def test_even_three_way_split(self, roster):
        balances = compute_balances(roster, [expense("A", "90", ["A", "B", "C"])])
        assert balances == {"A": Decimal("60.00"), "B": Decimal("-30.00"), "C": Decimal("-30.00")}

    def test_expenses_cancel_out(self):
        records = [expense("A", "10", ["A", "B"]), expense("B", "10", ["A", "B"])]
        assert compute_balances(["A", "B"], records) == {"A": Decimal("0.00"), "B": Decimal("0.00")}

    def test_payer_excluded_from_split(self, roster):
        balances = compute_balances(roster, [expense("A", "100", ["B", "C"])])
        assert balances == {"A": Decimal("100.00"), "B": Decimal("-50.00"), "C": Decimal("-50.00")}

    def test_settlement_reduces_debt(self, roster):
        records = [expense("A", "90", ["A", "B", "C"])]
        before = compute_balances(roster, records)
        after = compute_balances(roster, records + [settlement("B", "30", "A")])

        assert after["B"] - before["B"] == Decimal("30")
        assert after["A"] - before["A"] == Decimal("-30")
        assert after == {"A": Decimal("30.00"), "B": Decimal("0.00"), "C": Decimal("-30.00")}

    def test_tiny_expense(self, roster):
        balances = compute_balances(roster, [expense("A", "0.01", ["A", "B", "C"])])
        assert balances == {"A": Decimal("0.01"), "B": Decimal("0.00"), "C": Decimal("0.00")}

    def test_mixed_records(self, sample_records):
        balances = compute_balances(["A", "B", "C", "D"], sample_records)
        # A: +120 - 40 - 13.33 - 20 ; B: +60 - 40 - 30 ; C: +40 - 40 - 30 - 13.33 + 20 ; D: -13.33
        assert balances == {
            "A": Decimal("46.67"),
            "B": Decimal("-10.00"),
            "C": Decimal("-23.33"),
            "D": Decimal("-13.33"),
        }


@pytest.mark.unit
class TestRoster:

    def test_every_member_present_in_roster_order(self):
        balances = compute_balances(["C", "A", "B", "D"], [expense("A", "90", ["A", "B", "C"])])
        assert list(balances) == ["C", "A", "B", "D"]
        assert balances["D"] == Decimal("0.00")

    def test_no_records(self, roster):
        assert compute_balances(roster, []) == {"A": Decimal("0"), "B": Decimal("0"), "C": Decimal("0")}

    def test_empty_roster(self):
        assert compute_balances([], []) == {}

    def test_duplicate_roster_entries(self):
        assert normalize_roster(["A", "B", "A"]) == ["A", "B"]
        assert list(compute_balances(["A", "B", "A"], [])) == ["A", "B"]

    def test_unknown_payer(self, roster):
        with pytest.raises(UnknownMemberError) as exc:
            compute_balances(roster, [expense("Z", "10", ["A"])])
        assert exc.value.member == "Z"

    def test_unknown_participant(self, roster):
        with pytest.raises(UnknownMemberError, match="'D'"):
            compute_balances(roster, [expense("A", "10", ["A", "D"])])

    def test_unknown_settlement_receiver(self, roster):
        with pytest.raises(UnknownMemberError):
            compute_balances(roster, [settlement("A", "10", "Q")])

    def test_invalid_record_rejects_whole_computation(self, roster):
        records = [expense("A", "90", ["A", "B", "C"]), expense("B", "0", ["A"])]
        with pytest.raises(InvalidRecordError):
            compute_balances(roster, records)

    def test_members_are_compared_exactly(self):
        with pytest.raises(UnknownMemberError):
            compute_balances(["alice"], [expense("Alice", "10", ["alice"])])


@pytest.mark.unit
class TestSnapToZero:

    def test_below_threshold_snaps(self):
        assert snap_to_zero({"A": 1, "B": -4}, threshold=Decimal("0.05")) == {"A": 0, "B": 0}

    def test_threshold_itself_kept(self):
        assert snap_to_zero({"A": 1, "B": -1}) == {"A": 1, "B": -1}


@pytest.mark.unit
class TestProperties:

    def test_zero_sum_even_splits(self, roster):
        records = [
            expense("A", "90", ["A", "B", "C"]),
            expense("B", "45", ["A", "B", "C"]),
            expense("C", "12", ["A", "B"]),
            settlement("B", "7.50", "C"),
        ]
        assert sum(compute_balances(roster, records).values()) == Decimal("0")

    def test_zero_sum_within_drift(self):
        rng = random.Random(42)
        members = [f"M{i}" for i in range(6)]
        for _ in range(50):
            participants = rng.sample(members, rng.randint(1, len(members)))
            record = expense(rng.choice(members), f"{rng.randint(1, 50000) / 100:.2f}", participants)
            balances = compute_balances_cents(members, [record])
            # A single expense drifts by at most half a cent per participant
            assert abs(sum(balances.values())) * 2 <= len(participants)

    def test_single_uneven_expense_within_one_cent(self, roster):
        balances = compute_balances(roster, [expense("A", "100", ["A", "B", "C"])])
        assert abs(sum(balances.values())) <= Decimal("0.01")

    def test_order_independence_all_permutations(self, roster):
        records = [
            expense("A", "100", ["A", "B", "C"]),
            expense("B", "20", ["A", "C"]),
            settlement("C", "15.55", "A"),
            expense("C", "0.05", ["A", "B", "C"]),
        ]
        expected = compute_balances(roster, records)
        for permutation in itertools.permutations(records):
            assert compute_balances(roster, list(permutation)) == expected

    def test_order_independence_shuffled(self):
        rng = random.Random(7)
        members = ["Ana", "Ben", "Cleo", "Dev", "Eli"]
        records = []
        for _ in range(40):
            if rng.random() < 0.2:
                payer, receiver = rng.sample(members, 2)
                records.append(settlement(payer, f"{rng.randint(1, 9999) / 100:.2f}", receiver))
            else:
                participants = rng.sample(members, rng.randint(1, len(members)))
                records.append(expense(rng.choice(members), f"{rng.randint(1, 99999) / 100:.2f}", participants))

        expected = compute_balances(members, records)
        for _ in range(20):
            shuffled = records[:]
            rng.shuffle(shuffled)
            assert compute_balances(members, shuffled) == expected

    def test_inputs_not_mutated(self, roster):
        records = [expense("A", "90", ["A", "B", "B", "C"])]
        snapshot = [dict(r, participants=list(r["participants"])) for r in records]
        compute_balances(roster, records)
        assert records == snapshot

    def test_repeatable(self, roster, sample_records):
        members = roster + ["D"]
        assert compute_balances(members, sample_records) == compute_balances(members, sample_records)


@pytest.mark.unit
class TestRoundingDriftBound:

    def test_even_splits_carry_no_drift(self):
        records = [expense("A", "90", ["A", "B", "C"]), expense("B", "10", ["A", "B"])]
        assert rounding_drift_bound(records) == Decimal("0.00")

    def test_settlements_carry_no_drift(self):
        assert rounding_drift_bound([settlement("B", "33.33", "A")]) == Decimal("0.00")

    def test_drift_accumulates_across_uneven_expenses(self, roster):
        records = [expense("A", "100", ["A", "B", "C"])] * 4
        balances = compute_balances(roster, records)

        assert balances == {"A": Decimal("266.68"), "B": Decimal("-133.32"), "C": Decimal("-133.32")}
        assert sum(balances.values()) == Decimal("0.04")
        assert rounding_drift_bound(records) == Decimal("0.04")

    def test_opposite_drifts_still_counted(self, roster):
        # 100/3 leaves +0.01, 0.02/3 leaves -0.01
        records = [expense("A", "100", ["A", "B", "C"]), expense("A", "0.02", ["A", "B", "C"])]
        assert sum(compute_balances(roster, records).values()) == Decimal("0.00")
        assert rounding_drift_bound(records) == Decimal("0.02")

    def test_bound_covers_actual_drift(self):
        rng = random.Random(21)
        members = ["A", "B", "C", "D", "E", "F", "G"]
        for _ in range(30):
            records = []
            for _ in range(rng.randint(1, 40)):
                participants = rng.sample(members, rng.randint(1, len(members)))
                records.append(expense(rng.choice(members), f"{rng.randint(1, 99999) / 100:.2f}", participants))

            drift = abs(sum(compute_balances(members, records).values()))
            assert drift <= rounding_drift_bound(records)

    def test_invalid_record_rejected(self):
        with pytest.raises(InvalidRecordError):
            rounding_drift_bound([expense("A", "10", [])])
