from samplepkg.shapes import area


def test_wrong_area():
    assert area(2, 2) == 5
