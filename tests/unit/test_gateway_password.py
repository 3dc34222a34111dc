from src.tm_gateway.auth.password import hash_password, verify_password


def test_hash_is_not_plaintext() -> None:
    hashed = hash_password("secret123", rounds=4)
    assert hashed != "secret123"
    assert hashed.startswith("$2")


def test_verify_correct_and_wrong() -> None:
    hashed = hash_password("secret123", rounds=4)
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)


def test_same_password_different_salts() -> None:
    assert hash_password("secret123", rounds=4) != hash_password("secret123", rounds=4)


def test_long_password_truncated_consistently() -> None:
    long_pw = "p" * 100
    hashed = hash_password(long_pw, rounds=4)
    assert verify_password(long_pw, hashed)
    # bcrypt only sees the first 72 bytes
    assert verify_password("p" * 72, hashed)


def test_malformed_hash_never_matches() -> None:
    assert not verify_password("secret123", "not-a-bcrypt-hash")
