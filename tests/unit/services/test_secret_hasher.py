def test_verify_matches_only_the_hashed_secret(hasher):
    digest = hasher.hash("correct horse battery staple")

    assert digest != "correct horse battery staple"
    assert hasher.verify("correct horse battery staple", digest)
    assert not hasher.verify("correct horse battery stapler", digest)


def test_same_secret_hashes_differently(hasher):
    assert hasher.hash("secret") != hasher.hash("secret")


def test_long_secrets_are_not_truncated(hasher):
    # bcrypt alone ignores everything past 72 bytes
    prefix = "x" * 100
    digest = hasher.hash(prefix + "a")

    assert not hasher.verify(prefix + "b", digest)


def test_non_bcrypt_digest_does_not_verify(hasher):
    assert not hasher.verify("secret", "plain-text")
