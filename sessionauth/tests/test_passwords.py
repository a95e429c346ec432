"""Tests for :mod:`sessionauth.passwords`."""

import statistics
import string
import time
from unittest import TestCase, mock

from hypothesis import given, settings, assume
from hypothesis import strategies as st

from ..exceptions import HashingFailed
from ..passwords import PasswordHasher, ALGORITHM

hasher = PasswordHasher(iterations=10)


class TestHash(TestCase):
    """Tests for :meth:`.PasswordHasher.hash`."""

    def test_hash_is_self_describing(self):
        """The algorithm and work factor are stored with the hash."""
        encrypted = PasswordHasher(iterations=1234).hash('thepassword')
        algorithm, iterations, payload = encrypted.split('$')
        self.assertEqual(algorithm, ALGORITHM)
        self.assertEqual(iterations, '1234')
        self.assertNotIn('thepassword', payload)

    def test_salt_differs_per_call(self):
        """Hashing the same password twice gives two different hashes."""
        self.assertNotEqual(hasher.hash('same'), hasher.hash('same'))

    def test_bad_digest(self):
        """A misconfigured hasher fails loudly."""
        with self.assertRaises(HashingFailed):
            PasswordHasher(iterations=10, digest='not-a-digest').hash('foo')

    def test_bad_iterations(self):
        """The work factor has to be positive."""
        with self.assertRaises(ValueError):
            PasswordHasher(iterations=0)


class TestVerify(TestCase):
    """Tests for :meth:`.PasswordHasher.verify`."""

    @given(st.text(alphabet=string.printable))
    @settings(max_examples=200, deadline=None)
    def test_check_passwords_successful(self, passw):
        self.assertTrue(hasher.verify(passw, hasher.hash(passw)),
                        f"should work for password '{passw}'")

    @given(st.text(), st.text())
    @settings(max_examples=500, deadline=None)
    def test_check_passwords_fuzz(self, passw, fuzzpw):
        assume(passw != fuzzpw)
        self.assertFalse(hasher.verify(fuzzpw, hasher.hash(passw)))

    def test_trailing_nul_is_a_different_password(self):
        """Zero bytes at the end of a password are not ignored."""
        encrypted = hasher.hash('pw123')
        for wrong in ['pw123\x00', 'pw123\x00\x00']:
            self.assertFalse(hasher.verify(wrong, encrypted), repr(wrong))
        self.assertFalse(hasher.verify('\x00', hasher.hash('')))
        self.assertTrue(hasher.verify('pw123', encrypted))

    def test_old_work_factor_still_verifies(self):
        """Raising the iteration count does not lock out existing users."""
        old = PasswordHasher(iterations=5).hash('pw123')
        self.assertTrue(PasswordHasher(iterations=50).verify('pw123', old))

    def test_malformed_hash(self):
        """A mangled stored hash never verifies."""
        for encrypted in ['', 'nonsense', 'md5$10$abc',
                          f'{ALGORITHM}$ten$AAAA',
                          f'{ALGORITHM}$10$!!!notbase64',
                          f'{ALGORITHM}$10$AAAA']:
            self.assertFalse(hasher.verify('pw', encrypted), encrypted)

    def test_dummy_verify(self):
        """The dummy check always fails."""
        self.assertFalse(hasher.dummy_verify('anything'))
        self.assertFalse(hasher.dummy_verify(''))

    def test_dummy_hash_is_made_up_front(self):
        """The first unknown login costs no more than any later one."""
        fresh = PasswordHasher(iterations=10)
        with mock.patch.object(fresh, 'hash') as mock_hash:
            fresh.dummy_verify('anything')
        mock_hash.assert_not_called()


class TestTiming(TestCase):
    """Verification time should not depend on whether the password matches."""

    def test_match_and_mismatch_take_similar_time(self):
        slow = PasswordHasher(iterations=20000)
        encrypted = slow.hash('correct-horse')
        matching, mismatched = [], []
        for _ in range(30):
            start = time.perf_counter()
            slow.verify('correct-horse', encrypted)
            matching.append(time.perf_counter() - start)

            start = time.perf_counter()
            slow.verify('correct-hoRSE', encrypted)
            mismatched.append(time.perf_counter() - start)

        a = statistics.median(matching)
        b = statistics.median(mismatched)
        self.assertLess(abs(a - b) / max(a, b), 0.5)

    def test_unknown_user_costs_a_full_verification(self):
        """:meth:`.dummy_verify` is not a shortcut."""
        slow = PasswordHasher(iterations=20000)
        encrypted = slow.hash('correct-horse')
        slow.dummy_verify('warmup')
        real, dummy = [], []
        for _ in range(20):
            start = time.perf_counter()
            slow.verify('wrong', encrypted)
            real.append(time.perf_counter() - start)

            start = time.perf_counter()
            slow.dummy_verify('wrong')
            dummy.append(time.perf_counter() - start)

        a = statistics.median(real)
        b = statistics.median(dummy)
        self.assertLess(abs(a - b) / max(a, b), 0.5)
