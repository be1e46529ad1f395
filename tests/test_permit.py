"""Tests for signed permits and stake-with-permit."""

import pytest
from cryptography.hazmat.primitives.asymmetric import ed25519

from stakepool import (
    Ed25519PermitVerifier,
    ExpiredPermit,
    InMemoryLedger,
    InvalidSignature,
    ManualClock,
    PermitSignature,
    PermitSigner,
    PoolController,
    PoolPaused,
    TransferFailure,
    to_units,
)

from conftest import DAY, DISTRIBUTOR, OWNER, REWARDS_DURATION, START


@pytest.fixture
def verifier():
    return Ed25519PermitVerifier()


@pytest.fixture
def alice_signer(verifier):
    signer = PermitSigner(ed25519.Ed25519PrivateKey.generate())
    verifier.register("alice", signer.public_key)
    return signer


@pytest.fixture
def permit_pool(verifier):
    clock = ManualClock(START)
    token = InMemoryLedger("LP", verifier=verifier)
    pool = PoolController.create(
        owner=OWNER,
        rewards_distribution=DISTRIBUTOR,
        rewards_duration=REWARDS_DURATION,
        stake_ledger=token,
        reward_ledger=InMemoryLedger("RWD"),
        clock=clock,
    )
    token.mint("alice", to_units(10))
    return pool, token, clock


def _sign(token, signer, spender, value, deadline, owner="alice"):
    return signer.sign(token.permit_message(owner, spender, value, deadline))


# ---------------------------------------------------------------------------
# Signature encoding
# ---------------------------------------------------------------------------

class TestPermitSignature:
    def test_split_and_join(self, alice_signer):
        token = InMemoryLedger("LP")
        sig = _sign(token, alice_signer, "pool", 1, START)
        assert len(sig.r) == 32 and len(sig.s) == 32
        assert PermitSignature.from_bytes(sig.to_bytes(), v=sig.v) == sig

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            PermitSignature.from_bytes(b"\x00" * 63)

    def test_message_encoding_is_canonical(self):
        token = InMemoryLedger("LP")
        a = token.permit_message("alice", "pool", 5, START)
        b = token.permit_message("alice", "pool", 5, START)
        assert a.signable_bytes() == b.signable_bytes()
        assert b'"domain":"LP"' in a.signable_bytes()


# ---------------------------------------------------------------------------
# Ledger permit
# ---------------------------------------------------------------------------

class TestLedgerPermit:
    def test_valid_permit_sets_allowance(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        sig = _sign(token, alice_signer, "pool", 5, START + 10)

        token.permit("alice", "pool", 5, START + 10, sig, now=START)

        assert token.allowance("alice", "pool") == 5
        assert token.nonces("alice") == 1

    def test_deadline_is_inclusive(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        sig = _sign(token, alice_signer, "pool", 5, START)
        token.permit("alice", "pool", 5, START, sig, now=START)
        assert token.allowance("alice", "pool") == 5

    def test_expired_permit(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        sig = _sign(token, alice_signer, "pool", 5, START)
        with pytest.raises(ExpiredPermit):
            token.permit("alice", "pool", 5, START, sig, now=START + 1)

    def test_replay_rejected(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        sig = _sign(token, alice_signer, "pool", 5, START + 10)
        token.permit("alice", "pool", 5, START + 10, sig, now=START)

        with pytest.raises(InvalidSignature):
            token.permit("alice", "pool", 5, START + 10, sig, now=START)

    def test_tampered_value_rejected(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        sig = _sign(token, alice_signer, "pool", 5, START + 10)
        with pytest.raises(InvalidSignature):
            token.permit("alice", "pool", 500, START + 10, sig, now=START)

    def test_other_domain_rejected(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        other = InMemoryLedger("RWD", verifier=verifier)
        sig = _sign(other, alice_signer, "pool", 5, START + 10)
        with pytest.raises(InvalidSignature):
            token.permit("alice", "pool", 5, START + 10, sig, now=START)

    def test_signature_by_someone_else(self, verifier):
        mallory = PermitSigner(ed25519.Ed25519PrivateKey.generate())
        verifier.register("mallory", mallory.public_key)
        token = InMemoryLedger("LP", verifier=verifier)
        sig = _sign(token, mallory, "pool", 5, START + 10)
        with pytest.raises(InvalidSignature):
            token.permit("alice", "pool", 5, START + 10, sig, now=START)

    def test_no_verifier_rejects_everything(self, alice_signer):
        token = InMemoryLedger("LP")
        sig = _sign(token, alice_signer, "pool", 5, START + 10)
        with pytest.raises(InvalidSignature):
            token.permit("alice", "pool", 5, START + 10, sig, now=START)


class TestKeyVersions:
    def test_rotated_key_uses_next_version(self, verifier, alice_signer):
        new_key = ed25519.Ed25519PrivateKey.generate()
        version = verifier.register("alice", new_key.public_key())
        assert version == 1

        token = InMemoryLedger("LP", verifier=verifier)
        sig = _sign(token, PermitSigner(new_key, version=1), "pool", 5, START + 10)
        token.permit("alice", "pool", 5, START + 10, sig, now=START)
        assert token.allowance("alice", "pool") == 5

    def test_old_version_still_valid(self, verifier, alice_signer):
        verifier.register("alice", ed25519.Ed25519PrivateKey.generate().public_key())
        token = InMemoryLedger("LP", verifier=verifier)
        sig = _sign(token, alice_signer, "pool", 5, START + 10)
        token.permit("alice", "pool", 5, START + 10, sig, now=START)

    def test_unknown_version_rejected(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        sig = _sign(token, alice_signer, "pool", 5, START + 10)
        bumped = PermitSignature(v=3, r=sig.r, s=sig.s)
        with pytest.raises(InvalidSignature):
            token.permit("alice", "pool", 5, START + 10, bumped, now=START)


# ---------------------------------------------------------------------------
# Stake with permit
# ---------------------------------------------------------------------------

class TestStakeWithPermit:
    def test_stake_without_prior_approval(self, permit_pool, alice_signer):
        pool, token, clock = permit_pool
        deadline = clock.now() + DAY
        sig = _sign(token, alice_signer, pool.address, to_units(4), deadline)

        pool.stake_with_permit("alice", to_units(4), deadline, sig)

        assert pool.balance_of("alice") == to_units(4)
        assert token.balance_of("alice") == to_units(6)
        assert token.allowance("alice", pool.address) == 0

    def test_expired_permit_leaves_pool_untouched(self, permit_pool, alice_signer):
        pool, token, clock = permit_pool
        deadline = clock.now()
        sig = _sign(token, alice_signer, pool.address, to_units(4), deadline)
        clock.advance(1)
        before = pool.snapshot()

        with pytest.raises(ExpiredPermit):
            pool.stake_with_permit("alice", to_units(4), deadline, sig)

        assert pool.snapshot() == before
        assert token.nonces("alice") == 0

    def test_bad_signature(self, permit_pool, alice_signer):
        pool, token, clock = permit_pool
        deadline = clock.now() + DAY
        sig = _sign(token, alice_signer, "someone-else", to_units(4), deadline)

        with pytest.raises(InvalidSignature):
            pool.stake_with_permit("alice", to_units(4), deadline, sig)
        assert pool.balance_of("alice") == 0

    def test_paused_pool_rejects_before_permit(self, permit_pool, alice_signer):
        pool, token, clock = permit_pool
        pool.set_paused(OWNER, True)
        deadline = clock.now() + DAY
        sig = _sign(token, alice_signer, pool.address, to_units(4), deadline)

        with pytest.raises(PoolPaused):
            pool.stake_with_permit("alice", to_units(4), deadline, sig)
        assert token.nonces("alice") == 0

    def test_underfunded_owner_leaves_ledger_untouched(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        clock = ManualClock(START)
        pool = PoolController.create(
            owner=OWNER,
            rewards_distribution=DISTRIBUTOR,
            rewards_duration=REWARDS_DURATION,
            stake_ledger=token,
            reward_ledger=InMemoryLedger("RWD"),
            clock=clock,
        )
        deadline = clock.now() + DAY
        sig = _sign(token, alice_signer, pool.address, to_units(5), deadline)

        with pytest.raises(TransferFailure):
            pool.stake_with_permit("alice", to_units(5), deadline, sig)

        assert token.nonces("alice") == 0
        assert token.allowance("alice", pool.address) == 0
        assert pool.balance_of("alice") == 0

        # the same signature is still redeemable once alice is funded
        token.mint("alice", to_units(5))
        pool.stake_with_permit("alice", to_units(5), deadline, sig)
        assert pool.balance_of("alice") == to_units(5)
        assert token.nonces("alice") == 1


class TestTransferWithPermit:
    def test_consumes_permit_and_moves_tokens(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        token.mint("alice", 10)
        sig = _sign(token, alice_signer, "pool", 4, START)

        token.transfer_with_permit("alice", "pool", "vault", 4, START, sig, now=START)

        assert token.balance_of("vault") == 4
        assert token.allowance("alice", "pool") == 0
        assert token.nonces("alice") == 1

    def test_failed_transfer_restores_prior_allowance(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        token.approve("alice", "pool", 2)
        sig = _sign(token, alice_signer, "pool", 4, START)

        with pytest.raises(TransferFailure):
            token.transfer_with_permit("alice", "pool", "vault", 4, START, sig, now=START)

        assert token.allowance("alice", "pool") == 2
        assert token.nonces("alice") == 0

    def test_invalid_signature_checked_first(self, verifier, alice_signer):
        token = InMemoryLedger("LP", verifier=verifier)
        token.mint("alice", 10)
        sig = _sign(token, alice_signer, "pool", 4, START)

        with pytest.raises(InvalidSignature):
            token.transfer_with_permit("alice", "pool", "vault", 5, START, sig, now=START)
        assert token.balance_of("alice") == 10
