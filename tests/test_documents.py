import pydantic
import pytest

from foodlink.repos.documents import donation_from_doc, donation_to_doc, ngo_from_doc, ngo_to_doc

from factories import make_donation, make_ngo

def test_ngo_document_uses_geojson():
    doc = ngo_to_doc(make_ngo("A", km=0.0))
    assert doc["location"]["type"] == "Point"
    lng, lat = doc["location"]["coordinates"]
    doc["_id"] = "A"
    back = ngo_from_doc(doc)
    assert (back.location.lat, back.location.lng) == (lat, lng)

def test_ngo_record_without_capacity_is_rejected():
    doc = ngo_to_doc(make_ngo("A"))
    doc["_id"] = "A"
    del doc["capacity"]
    with pytest.raises(pydantic.ValidationError):
        ngo_from_doc(doc)

def test_pending_claim_flag_is_read_but_not_serialized():
    doc = donation_to_doc(make_donation(status="claimed"))
    doc.update(_id="d1", claim_pending=True)
    donation = donation_from_doc(doc)
    assert donation.claim_pending is True
    assert "claim_pending" not in donation.model_dump()
