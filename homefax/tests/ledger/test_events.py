import pytest

from homefax.core.errors import MalformedConfirmation
from homefax.ledger.client import LedgerEvent, Receipt
from homefax.ledger.events import PROPERTY_CREATED, extract_int_arg, find_event


def receipt_with(*events):
    return Receipt(tx_hash="0xabc", block_number=7, succeeded=True, events=list(events))


def test_event_found_by_name_behind_other_logs():
    receipt = receipt_with(
        LedgerEvent(name="Transfer", args={"value": 5}, log_index=0),
        LedgerEvent(name="UserAuthorized", args={"user": "0x1"}, log_index=1),
        LedgerEvent(name=PROPERTY_CREATED, args={"propertyId": 11}, log_index=2),
    )

    assert extract_int_arg(receipt, event_name=PROPERTY_CREATED, arg_name="propertyId", operation="create_property") == 11


def test_first_matching_event_by_log_index_wins():
    receipt = receipt_with(
        LedgerEvent(name=PROPERTY_CREATED, args={"propertyId": 9}, log_index=4),
        LedgerEvent(name=PROPERTY_CREATED, args={"propertyId": 3}, log_index=1),
    )

    assert find_event(receipt, PROPERTY_CREATED).args["propertyId"] == 3


@pytest.mark.parametrize(
    "events",
    [
        [],
        [LedgerEvent(name="Transfer", args={"propertyId": 1}, log_index=0)],
        [LedgerEvent(name=PROPERTY_CREATED, args={}, log_index=0)],
        [LedgerEvent(name=PROPERTY_CREATED, args={"propertyId": "seven"}, log_index=0)],
        [LedgerEvent(name=PROPERTY_CREATED, args={"propertyId": True}, log_index=0)],
        [LedgerEvent(name=PROPERTY_CREATED, args={"propertyId": -1}, log_index=0)],
    ],
)
def test_missing_or_bad_id_is_malformed(events):
    with pytest.raises(MalformedConfirmation):
        extract_int_arg(receipt_with(*events), event_name=PROPERTY_CREATED, arg_name="propertyId", operation="create_property")
