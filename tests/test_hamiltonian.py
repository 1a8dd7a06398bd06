#! /usr/bin/env python

import doctest
import unittest

import networkx as nx
import numpy as np
import scipy as sp
from rydbergpy import hamiltonian
from rydbergpy.hamiltonian import (
    HermitianMatrix,
    Parameter,
    PerParticle,
    RydbergHamiltonian,
    Uniform,
    as_parameter,
    sigma_x_term,
    sigma_z_term,
    to_matrix,
)
from rydbergpy.shared import DimensionMismatchError
from rydbergpy.subspace import blockade_subspace, subspace

RNG = np.random.default_rng(42)


def load_tests(loader, tests, ignore):
    tests.addTests(doctest.DocTestSuite(hamiltonian))
    return tests


def random_graphs():
    yield nx.path_graph(5)
    yield nx.cycle_graph(6)
    yield nx.convert_node_labels_to_integers(nx.grid_2d_graph(2, 3), ordering="sorted")
    for seed in range(3):
        yield nx.gnp_random_graph(7, 0.35, seed=seed)


class ParameterTests(unittest.TestCase):
    def test_as_parameter(self):
        self.assertEqual(as_parameter(2), Uniform(2.0))
        self.assertEqual(as_parameter(np.float64(0.5)), Uniform(0.5))
        self.assertEqual(as_parameter([1, 2]), PerParticle((1.0, 2.0)))
        self.assertEqual(as_parameter(np.array([1.0])), PerParticle((1.0,)))
        p = Uniform(1.0)
        self.assertIs(as_parameter(p), p)

    def test_uniform_any_size(self):
        p = Uniform(3.0)
        for n in range(5):
            p.check(n)
            np.testing.assert_equal(p.to_array(n), np.full(n, 3.0))
        self.assertEqual(p.value_at(100), 3.0)

    def test_abstract_parameter(self):
        with self.assertRaises(TypeError):
            Parameter()

        class Incomplete(Parameter):
            def value_at(self, k):
                return 0.0

        with self.assertRaises(TypeError):
            Incomplete()

    def test_per_particle_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            PerParticle([1.0, 2.0]).check(3, "omega")

    def test_not_finite(self):
        for bad in [np.nan, np.inf, [1.0, np.nan], [-np.inf]]:
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    as_parameter(bad)

    def test_not_flat(self):
        with self.assertRaises(ValueError):
            as_parameter([[1.0, 2.0]])

    def test_immutable(self):
        p = PerParticle([1.0, 2.0])
        with self.assertRaises(AttributeError):
            p.values = (3.0,)


class HermitianMatrixTests(unittest.TestCase):
    def test_lower_triangle_rejected(self):
        with self.assertRaises(ValueError):
            HermitianMatrix(sp.sparse.csr_matrix([[0, 0], [1, 0]]))

    def test_complex_diagonal_rejected(self):
        with self.assertRaises(ValueError):
            HermitianMatrix(sp.sparse.csr_matrix([[1j, 0], [0, 0]]))

    def test_not_square(self):
        with self.assertRaises(ValueError):
            HermitianMatrix(sp.sparse.csr_matrix(np.zeros((2, 3))))

    def test_matvec_matches_dense(self):
        upper = sp.sparse.triu(
            sp.sparse.random(20, 20, density=0.3, random_state=1)
            + 1j * sp.sparse.random(20, 20, density=0.3, random_state=2),
            k=1,
        ) + sp.sparse.diags(RNG.normal(size=20))
        H = HermitianMatrix(upper)
        dense = H.toarray()
        np.testing.assert_allclose(dense, dense.conj().T)
        x = RNG.normal(size=20) + 1j * RNG.normal(size=20)
        np.testing.assert_allclose(H @ x, dense @ x)
        X = RNG.normal(size=(20, 3))
        np.testing.assert_allclose(H @ X, dense @ X)
        np.testing.assert_allclose(H.H @ x, dense @ x)


class AssemblyTests(unittest.TestCase):
    def random_matrix(self, graph):
        n = graph.number_of_nodes()
        s = blockade_subspace(graph)
        omega = RNG.uniform(0.5, 2.0, n)
        phi = RNG.uniform(-np.pi, np.pi, n)
        delta = RNG.normal(size=n)
        return s, omega, phi, delta, to_matrix(s, omega, phi, delta)

    def test_hermitian(self):
        for g in random_graphs():
            with self.subTest(g):
                s, _, _, _, H = self.random_matrix(g)
                dense = H.toarray()
                self.assertEqual(dense.shape, (len(s), len(s)))
                np.testing.assert_allclose(dense, dense.conj().T)
                np.testing.assert_equal(np.imag(np.diag(dense)), 0)

    def test_upper_triangle_only(self):
        for g in random_graphs():
            with self.subTest(g):
                H = self.random_matrix(g)[-1]
                self.assertEqual(sp.sparse.tril(H.upper, k=-1).nnz, 0)

    def test_entries(self):
        for g in random_graphs():
            with self.subTest(g):
                s, omega, phi, delta, H = self.random_matrix(g)
                dense = H.toarray()
                occ = s.occupations()
                for i, a in enumerate(s):
                    self.assertAlmostEqual(
                        dense[i, i].real, np.sum(delta * (1 - 2 * occ[i]))
                    )
                    for j, b in enumerate(s):
                        diff = a ^ b
                        if diff and diff & (diff - 1) == 0:
                            if b < a:
                                continue
                            k = diff.bit_length() - 1
                            expected = omega[k] * np.exp(1j * phi[k])
                            self.assertAlmostEqual(dense[i, j], expected)
                            self.assertAlmostEqual(dense[j, i], np.conj(expected))
                        elif i != j:
                            self.assertEqual(dense[i, j], 0)

    def test_single_atom(self):
        H = to_matrix(subspace(1, [{0}]), [1.0], [0.0], [0.0])
        np.testing.assert_allclose(H.toarray(), [[0, 1], [1, 0]])

    def test_single_atom_detuned(self):
        H = to_matrix(subspace(1, [{0}]), 0.5, np.pi / 2, 2.0)
        np.testing.assert_allclose(H.toarray(), [[2, 0.5j], [-0.5j, -2]], atol=1e-12)

    def test_blockaded_pair(self):
        s = subspace(2, [{0}, {1}])
        H = to_matrix(s, 1.0, 0.0, 0.0).toarray()
        self.assertEqual(H.shape, (3, 3))
        np.testing.assert_allclose(H, [[0, 1, 1], [1, 0, 0], [1, 0, 0]])

    def test_dimension_mismatch(self):
        s = subspace(3, [{0, 2}, {1}])
        with self.assertRaises(DimensionMismatchError):
            to_matrix(s, [1.0, 1.0], 0.0, 0.0)
        with self.assertRaises(DimensionMismatchError):
            to_matrix(s, 1.0, [0.0] * 4, 0.0)
        with self.assertRaises(DimensionMismatchError):
            to_matrix(s, 1.0, 0.0, [0.0])

    def test_coupling_only(self):
        s = subspace(3, [{0, 2}, {1}])
        H = to_matrix(s, 1.0, 0.0)
        np.testing.assert_equal(H.diagonal(), 0)
        rows, cols, _ = sigma_x_term(s, 1.0, 0.0)
        self.assertEqual(H.nnz, len(rows))
        self.assertTrue(np.all(cols > rows))

    def test_zero_omega_keeps_structure(self):
        rows, cols, values = sigma_x_term(subspace(2, [{0}, {1}]), 0.0, 0.0)
        self.assertEqual(len(rows), 2)
        np.testing.assert_equal(values, 0)

    def test_no_atoms(self):
        s = subspace(0, [])
        H = to_matrix(s, 1.0, 0.0, 1.0)
        self.assertEqual(H.shape, (1, 1))
        self.assertEqual(H.toarray()[0, 0], 0)

    def test_sigma_z(self):
        s = subspace(3, [{0, 2}, {1}])
        rows, cols, values = sigma_z_term(s, [1.0, 2.0, 4.0])
        np.testing.assert_equal(rows, cols)
        np.testing.assert_allclose(values.real, [7, 5, 3, -1, -3])


class RydbergHamiltonianTests(unittest.TestCase):
    def test_default_radius(self):
        h = RydbergHamiltonian(C=64.0, omega=[1.0, -1.0], phi=0.0, delta=0.0,
                               atoms=[(0, 0), (1, 0)])
        self.assertAlmostEqual(h.blockade_radius, 2.0)
        self.assertEqual(sorted(h.graph().edges), [(0, 1)])
        self.assertEqual(list(h.subspace()), [0, 1, 2])

    def test_explicit_radius(self):
        h = RydbergHamiltonian(C=64.0, omega=1.0, phi=0.0, delta=0.0,
                               atoms=[(0, 0), (1, 0)], radius=0.5)
        self.assertEqual(h.blockade_radius, 0.5)
        self.assertEqual(list(h.subspace()), [0, 1, 2, 3])
        self.assertEqual(h.to_matrix().shape, (4, 4))

    def test_zero_omega_needs_radius(self):
        with self.assertRaises(ValueError):
            RydbergHamiltonian(C=64.0, omega=0.0, phi=0.0, delta=1.0,
                               atoms=[(0, 0), (1, 0)])
        h = RydbergHamiltonian(C=64.0, omega=0.0, phi=0.0, delta=1.0, atoms=[(0, 0)])
        self.assertEqual(h.blockade_radius, 0.0)

    def test_negative_radius(self):
        with self.assertRaises(ValueError):
            RydbergHamiltonian(C=64.0, omega=1.0, phi=0.0, delta=0.0,
                               atoms=[(0, 0)], radius=-1.0)

    def test_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            RydbergHamiltonian(C=64.0, omega=1.0, phi=[0.0, 0.0], delta=0.0,
                               atoms=[(0, 0)])

    def test_immutable(self):
        h = RydbergHamiltonian(C=64.0, omega=1.0, phi=0.0, delta=0.0, atoms=[(0, 0)])
        with self.assertRaises(AttributeError):
            h.C = 1.0
        self.assertIsInstance(h.omega, Uniform)

    def test_chain(self):
        h = RydbergHamiltonian(C=64.0, omega=1.0, phi=0.0, delta=0.5,
                               atoms=[(x, 0) for x in range(4)], radius=1.0)
        self.assertEqual(len(h.subspace()), 8)
        H = h.to_matrix().toarray()
        np.testing.assert_allclose(H, H.conj().T)
