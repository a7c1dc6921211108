import pytest

from arrowsheet import (
    ArrowKind,
    ConstantSpec,
    DerivedSpec,
    InverseCandidate,
    ProgrammingContractViolation,
    Quiver,
    SolverConfig,
    VariableSpec,
)
from arrowsheet.solver import ConstraintKind, ConstraintNetwork

ADD = ConstraintKind.ADD
MUL = ConstraintKind.MULTIPLY


def _labels(quiver):
    return [arrow.label for arrow in quiver.arrows]


def test_with_anchors_holds_zero_one_and_minus_one():
    quiver = Quiver.with_anchors()

    assert _labels(quiver) == ["0", "1", "-1"]
    assert all(arrow.kind is ArrowKind.CONSTANT for arrow in quiver)
    assert all(quiver.is_pinned(arrow) for arrow in quiver)
    assert quiver.zero.position == 0
    assert quiver.one.position == 1


def test_identity_is_created_on_demand():
    quiver = Quiver(config=SolverConfig())
    assert quiver.is_empty()

    one = quiver.identity(MUL)

    assert one.label == "1"
    assert quiver.one is one
    assert len(quiver) == 1


def test_variables_get_sequential_names():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1 + 1j))
    b = quiver.add(VariableSpec(2))

    assert (a.label, b.label) == ("a", "b")
    assert a.kind is ArrowKind.VARIABLE
    assert not quiver.is_pinned(a)
    assert quiver.independent_variable() is a


def test_next_variable_name_skips_used_labels():
    quiver = Quiver()
    quiver.add(VariableSpec(0, label="b"))

    assert quiver.name_next_variable() == "c"


def test_derived_arrows_start_consistent():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1 + 2j))
    b = quiver.add(VariableSpec(3 - 1j))
    s = quiver.add(DerivedSpec(ADD, a, b))
    p = quiver.add(DerivedSpec(MUL, a, b))

    assert s.position == 4 + 1j
    assert p.position == (1 + 2j) * (3 - 1j)
    assert (s.label, p.label) == ("a+b", "ab")
    assert s.operands == (a, b)
    assert quiver.total_error() == 0.0


def test_explicit_labels_are_kept():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1, label="x"))
    s = quiver.add(DerivedSpec(ADD, a, a, label="twice"))
    helper = quiver.add(DerivedSpec(ADD, a, a, labelled=False))

    assert s.label == "twice"
    assert helper.label is None


def test_foreign_operands_are_rejected():
    mine = Quiver()
    other = Quiver()
    stranger = other.add(VariableSpec(1))
    a = mine.add(VariableSpec(1))

    with pytest.raises(ProgrammingContractViolation):
        mine.add(DerivedSpec(ADD, a, stranger))
    with pytest.raises(ProgrammingContractViolation):
        mine.add("not a spec")


def test_watchers_see_additions_moves_and_merges():
    quiver = Quiver.with_anchors()
    events = []
    quiver.add_watcher(events.append)

    a = quiver.add(VariableSpec(1))
    quiver.move(a, 2)
    quiver.merge([a, quiver.one])

    assert [event.tag for event in events] == ["add", "move", "merge"]
    assert events[0].arrow is a
    assert events[-1].arrow is quiver.one


def test_merge_prefers_constants():
    quiver = Quiver.with_anchors()
    a = quiver.add(VariableSpec(1.02))

    rep = quiver.merge([a, quiver.one])

    assert rep is quiver.one
    assert rep.label == "1 = a"
    assert rep.aliases == [a]
    assert a.merged and a.representative() is rep
    assert a not in quiver.arrows
    assert quiver.get(a.id) is a


def test_merge_prefers_variables_over_results():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1))
    b = quiver.add(VariableSpec(2))
    s = quiver.add(DerivedSpec(ADD, a, b))
    c = quiver.add(VariableSpec(3.05))

    rep = quiver.merge([s, c])

    assert rep is c
    assert c.label == "c = a+b"
    assert _labels(quiver) == ["a", "b", "c = a+b"]


def test_merge_rewrites_constraints_onto_the_representative():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1))
    b = quiver.add(VariableSpec(2))
    s = quiver.add(DerivedSpec(ADD, a, b))
    c = quiver.add(VariableSpec(3))
    quiver.merge([s, c])

    for constraint in quiver.network.constraints:
        assert not constraint.references(s.handle.re)
        assert not constraint.references(s.handle.im)


@pytest.mark.parametrize("nearly_one, exact", [(1.0, True), (1.0000001, False)])
def test_merge_keeps_error_near_zero_without_relaxing(nearly_one, exact):
    quiver = Quiver()
    one = quiver.add(ConstantSpec(1))
    a = quiver.add(VariableSpec(nearly_one))
    s = quiver.add(DerivedSpec(ADD, a, one))

    quiver.merge([a, one])

    assert list(quiver.arrows) == [one, s]
    assert all(k.a == one.handle.re or k.a == one.handle.im for k in quiver.network.constraints)
    if exact:
        assert quiver.total_error() == 0.0
    else:
        assert quiver.total_error() == pytest.approx(0.0, abs=1e-12)


def test_merge_keeps_the_earliest_variable():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1.0))
    b = quiver.add(VariableSpec(1.0000001))
    c = quiver.add(VariableSpec(2))
    s = quiver.add(DerivedSpec(ADD, b, c))

    (cluster,) = quiver.find_coincidences(0.1)
    rep = quiver.merge(cluster)

    assert rep is a
    assert a.label == "a = b"
    assert quiver.arrows == (a, c, s)
    re_sum, im_sum = quiver.network.constraints
    assert (re_sum.a, im_sum.a) == (a.handle.re, a.handle.im)
    assert not any(k.references(b.handle.re) or k.references(b.handle.im) for k in quiver.network.constraints)
    assert quiver.total_error() == pytest.approx(0.0, abs=1e-12)


def test_merging_constants_keeps_other_constants_intact_when_deduplicating():
    quiver = Quiver.with_anchors(SolverConfig(dedupe_constants=True))
    zero, one = quiver.zero, quiver.one
    a = quiver.add(VariableSpec(2))
    quiver.set_stay_pinned(a, True)
    p = quiver.add(DerivedSpec(MUL, a, one))
    shifted = quiver.add(ConstantSpec(0.05j))

    assert set(one.handle).isdisjoint(zero.handle)
    assert quiver.merge([zero, shifted]) is shifted

    report = quiver.settle()

    assert report.converged
    assert quiver.total_error() == 0.0
    assert quiver.binding.read(one.handle) == 1
    assert p.position == 2


def test_merge_leaves_shared_constant_wires_alone():
    quiver = Quiver(config=SolverConfig(dedupe_constants=True))
    first = quiver.add(ConstantSpec(0))
    second = quiver.add(ConstantSpec(0))
    a = quiver.add(VariableSpec(1))
    s = quiver.add(DerivedSpec(ADD, a, second))
    shifted = quiver.add(ConstantSpec(0.05j))
    assert first.handle == second.handle

    quiver.merge([first, shifted])

    assert first.merged
    assert second in quiver.arrows
    assert [k.b for k in quiver.network.constraints] == [second.handle.re, second.handle.im]
    assert quiver.total_error() == 0.0
    assert s.position == 1


def test_quiver_over_existing_network_uses_its_config():
    network = ConstraintNetwork(SolverConfig(merge_tolerance=0.3))

    assert Quiver(network).config is network.config
    assert Quiver(network, config=network.config).config.merge_tolerance == 0.3
    with pytest.raises(ProgrammingContractViolation):
        Quiver(network, config=SolverConfig())


def test_merge_of_a_single_arrow_is_a_no_op():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1))
    events = []
    quiver.add_watcher(events.append)

    assert quiver.merge([a, a]) is a
    assert events == []
    assert a.aliases == []


def test_merge_rejects_empty_clusters():
    with pytest.raises(ProgrammingContractViolation):
        Quiver().merge([])


def test_merged_operands_resolve_to_representative():
    quiver = Quiver.with_anchors()
    a = quiver.add(VariableSpec(1))
    quiver.merge([a, quiver.one])

    s = quiver.add(DerivedSpec(ADD, a, a))

    assert s.operands == (quiver.one, quiver.one)
    assert s.position == 2


def test_merged_arrow_keeps_unlabelled_representative_label():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1, label="a"))
    helper = quiver.add(DerivedSpec(ADD, a, a, labelled=False))
    b = quiver.add(VariableSpec(2.01, label="b"))
    quiver.merge([b, helper])

    assert b.label == "b"


def test_find_coincidences_uses_configured_tolerance():
    quiver = Quiver(config=SolverConfig(merge_tolerance=0.1))
    a = quiver.add(VariableSpec(1))
    b = quiver.add(VariableSpec(1.05))
    quiver.add(VariableSpec(3))

    assert quiver.find_coincidences() == [[a, b]]
    assert quiver.find_coincidences(0.01) == []


def test_find_coincidences_transitive_mode():
    quiver = Quiver(config=SolverConfig(transitive_coincidences=True))
    chain = [quiver.add(VariableSpec(x)) for x in (0, 0.08, 0.16)]

    assert quiver.find_coincidences() == [chain]
    assert quiver.find_coincidences(transitive=False) == [chain[:2]]


def test_accessors_and_free_arrows():
    quiver = Quiver.with_anchors()
    a = quiver.add(VariableSpec(1j))
    s = quiver.add(DerivedSpec(ADD, a, quiver.one))

    assert quiver.free_arrows() == [a, s]
    assert quiver.label(s) == "a+1"
    assert quiver.position(s) == 1 + 1j
    assert quiver.operator(s).operation is ADD


def test_merge_coincidences_snaps_variable_onto_constant():
    quiver = Quiver.with_anchors()
    a = quiver.add(VariableSpec(1.02))

    merged = quiver.merge_coincidences()

    assert merged == [quiver.one]
    assert a.representative() is quiver.one


def test_additive_inverse_candidates():
    quiver = Quiver.with_anchors()
    a = quiver.add(VariableSpec(1 + 1j))

    candidates = quiver.compute_inverse_candidates(ADD)

    assert [c.source for c in candidates] == list(quiver.arrows)
    assert candidates[-1] == InverseCandidate(source=a, operation=ADD, position=-1 - 1j)


def test_multiplicative_candidates_skip_zero():
    quiver = Quiver.with_anchors()
    quiver.add(VariableSpec(2j))

    candidates = quiver.compute_inverse_candidates(MUL)

    assert [c.source.label for c in candidates] == ["1", "-1", "a"]
    assert candidates[-1].position == pytest.approx(-0.5j)


def test_materialize_additive_inverse_tracks_source():
    quiver = Quiver.with_anchors()
    a = quiver.add(VariableSpec(1 + 1j))
    candidate = quiver.compute_inverse_candidates(ADD)[-1]

    inverse = quiver.materialize_inverse(candidate)

    assert inverse.label == "-a"
    assert inverse.kind is ArrowKind.VARIABLE
    assert inverse.position == -1 - 1j
    assert len(quiver.zero.aliases) == 1
    assert quiver.zero.aliases[0].label is None
    assert quiver.total_error() == 0.0

    quiver.set_stay_pinned(a, True)
    quiver.move(a, 2)
    report = quiver.settle()

    assert report.converged
    assert inverse.position == pytest.approx(-2, abs=1e-2)


def test_perturbed_additive_inverse_relaxes_back():
    quiver = Quiver.with_anchors()
    a = quiver.add(VariableSpec(1 + 1j))
    inverse = quiver.materialize_inverse(quiver.compute_inverse_candidates(ADD)[-1])
    quiver.set_stay_pinned(a, True)

    quiver.move(inverse, -0.7 - 1j)
    quiver.relax_and_sync(3000)

    assert inverse.position == pytest.approx(-a.position, abs=1e-4)


def test_materialize_multiplicative_inverse():
    quiver = Quiver.with_anchors()
    a = quiver.add(VariableSpec(2j))
    candidate = quiver.compute_inverse_candidates(MUL)[-1]

    inverse = quiver.materialize_inverse(candidate)

    assert inverse.label == "1/a"
    assert inverse.position == pytest.approx(-0.5j)
    assert quiver.one.aliases[0].kind is ArrowKind.PRODUCT
    assert quiver.total_error() == pytest.approx(0.0, abs=1e-12)


def test_reciprocal_of_zero_is_refused():
    quiver = Quiver.with_anchors()
    candidate = InverseCandidate(source=quiver.zero, operation=MUL, position=0j)

    with pytest.raises(ProgrammingContractViolation):
        quiver.materialize_inverse(candidate)


def test_constants_cannot_be_unpinned():
    quiver = Quiver.with_anchors()
    quiver.pin(quiver.one, False)
    quiver.set_stay_pinned(quiver.one, False)

    assert quiver.is_pinned(quiver.one)
    assert not quiver.one.stay_pinned


def test_pin_all_skips_sticky_arrows():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1))
    b = quiver.add(VariableSpec(2))
    s = quiver.add(DerivedSpec(ADD, a, b))
    quiver.set_stay_pinned(b, True)

    quiver.pin_all(True)
    assert quiver.is_pinned(a) and quiver.is_pinned(s)

    quiver.pin_all(False)
    assert not quiver.is_pinned(a)
    assert not quiver.is_pinned(s)
    assert quiver.is_pinned(b)


def test_sticky_pinned_result_counts_as_constraint():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1))
    s = quiver.add(DerivedSpec(ADD, a, a))
    assert not quiver.has_constrained_result()

    quiver.set_stay_pinned(a, True)
    assert not quiver.has_constrained_result()

    quiver.set_stay_pinned(s, True)
    assert quiver.has_constrained_result()


def test_settle_without_error_does_nothing():
    quiver = Quiver.with_anchors()
    report = quiver.settle()

    assert report.rounds == 0
    assert report.converged


def test_settle_reports_failure_when_everything_is_pinned():
    quiver = Quiver()
    one = quiver.add(ConstantSpec(1))
    two = quiver.add(ConstantSpec(2))
    s = quiver.add(DerivedSpec(ADD, one, two))
    assert s.label == "3"

    quiver.move(s, 5)
    quiver.set_stay_pinned(s, True)
    report = quiver.settle(steps=10, max_rounds=3)

    assert report.rounds == 3
    assert report.steps == 30
    assert not report.converged
    assert report.total_error == pytest.approx(2.0)
    assert s.position == 5


def test_rename():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1))

    assert quiver.rename("a", " z ") is a
    assert a.label == "z"
    assert quiver.rename("missing", "q") is None
    assert quiver.rename("z", "  ") is None


def test_provenance_of_sum_and_product():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1))
    b = quiver.add(VariableSpec(2j))
    s = quiver.add(DerivedSpec(ADD, a, b))
    p = quiver.add(DerivedSpec(MUL, a, b))

    assert quiver.provenance(s) == [[1, 1 + 2j], [2j, 1 + 2j]]
    (arc,) = quiver.provenance(p)
    assert len(arc) == 17
    assert arc[0] == 1
    assert arc[-1] == 2j
    assert quiver.provenance(a) == []


def test_provenance_includes_labelled_aliases():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1))
    b = quiver.add(VariableSpec(2))
    s = quiver.add(DerivedSpec(ADD, a, b))
    c = quiver.add(VariableSpec(3.05))
    quiver.merge([s, c])

    assert quiver.provenance(c) == [[1, 3.05], [2, 3.05]]
