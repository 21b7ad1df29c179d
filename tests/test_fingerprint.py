from wallsync.fingerprint import decode_checksum, encode_checksum, fingerprint


def test_fingerprint_known_vector():
    assert fingerprint(b"123456789") == 0xE3069283


def test_fingerprint_differs_on_content_change():
    assert fingerprint(b"wallpaper") != fingerprint(b"wallpaper!")


def test_encode_matches_bucket_representation():
    assert encode_checksum(0xE3069283) == "4waSgw=="
    assert decode_checksum("4waSgw==") == 0xE3069283


def test_decode_missing_checksum():
    assert decode_checksum(None) is None
    assert decode_checksum("") is None


def test_encode_pads_small_values():
    assert decode_checksum(encode_checksum(1)) == 1
    assert encode_checksum(0) == "AAAAAA=="
