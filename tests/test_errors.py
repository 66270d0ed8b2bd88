from shared.errors import BadRequest, Conflict, NotFound


def test_errors_fall_back_to_default_detail():
    error = NotFound()

    assert error.status_code == 404
    assert error.detail == "Not found"
    assert str(error) == "not_found: Not found"


def test_errors_keep_given_detail():
    assert BadRequest("Date is in the future").detail == "Date is in the future"
    assert Conflict(None).detail == "Conflicting record already exists"
