# main.py
# Punto de entrada principal del motor de Ranking Electoral
# =========================================================

"""
Coordinador de las pasadas batch del motor de puntajes.

La ingesta externa deja los registros crudos en la base de datos; este
archivo los convierte en puntajes:
- Configuración y logging del proceso
- Recálculo completo de todos los candidatos
- Aplicación incremental de una nueva categoría de penalidad
- Reconciliación de registros hermanos
- Consulta del ranking resultante
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from config import (
    PROJECT_VERSION,
    RECOMPUTE_CONFIG,
    SCORING_CONFIG,
    validate_config,
)
from ranking_electoral.config_schema import PENALTY_CATEGORIES
from src import (
    CandidateScorer,
    RecomputeDriver,
    SiblingReconciler,
    get_database_manager,
    setup_logging,
)
from src.recompute import BatchResult, ReconciliationReport


class RankingEngineSystem:
    """
    Agrupa los componentes del motor para una ejecución de línea de comandos.

    Cada subcomando del CLI corresponde a un método; todos comparten el mismo
    repositorio, scorer y registro de locks.
    """

    def __init__(self, reference_year: Optional[int] = None):
        self.reference_year = reference_year
        self.db_manager = None
        self.driver = None
        self.reconciler = None
        self.logger = None
        self.is_initialized = False

    def initialize(self) -> bool:
        """
        Inicializa logging, valida la configuración y abre la base de datos.

        Returns:
            True si la inicialización fue exitosa, False en caso contrario
        """
        try:
            self.logger = setup_logging()
            validate_config()

            self.db_manager = get_database_manager()
            scorer = CandidateScorer(SCORING_CONFIG, reference_year=self.reference_year)
            self.driver = RecomputeDriver(
                self.db_manager, scorer, workers=RECOMPUTE_CONFIG["workers"]
            )
            self.reconciler = SiblingReconciler(self.db_manager, self.driver)

            self.logger.log_system_startup(
                version=PROJECT_VERSION,
                config_summary={
                    "database_type": self.db_manager.config["type"],
                    "scoring_version": scorer.version,
                    "reference_year": scorer.reference_year,
                    "enabled_categories": ", ".join(
                        scorer.config["integrity"]["enabled_categories"]
                    ),
                    "workers": self.driver.workers,
                },
            )
            self.is_initialized = True
            return True

        except Exception as e:
            print(f"❌ Error durante inicialización: {e}")
            return False

    def _require_initialized(self):
        if not self.is_initialized:
            raise RuntimeError("Sistema no inicializado. Ejecutar initialize() primero.")

    def run_recompute(self, candidate_ids: Optional[List[int]] = None) -> BatchResult:
        self._require_initialized()
        return self.driver.recompute_all(candidate_ids)

    def run_apply_penalty(
        self, category: str, candidate_ids: Optional[List[int]] = None
    ) -> BatchResult:
        self._require_initialized()
        return self.driver.apply_new_penalty(category, candidate_ids)

    def run_reconcile(self) -> ReconciliationReport:
        self._require_initialized()
        return self.reconciler.reconcile()

    def get_ranking(self, **filters: Any) -> List[Dict[str, Any]]:
        self._require_initialized()
        return self.db_manager.get_ranking(**filters)


def _print_batch(title: str, result: BatchResult):
    print(f"\n📈 {title}:")
    print(f"  • Procesados: {result.processed}")
    print(f"  • Con cambios: {result.changed}")
    print(f"  • Errores: {result.errors}")
    print(f"  • Tiempo: {result.elapsed_seconds:.1f}s ({result.rate:.1f}/s)")


def _print_reconciliation(report: ReconciliationReport):
    print("\n🔗 RECONCILIACIÓN:")
    print(f"  • Grupos revisados: {report.groups_checked}")
    print(f"  • Candidatos completados: {len(report.updated)}")
    print(f"  • Errores al recalcular: {len(report.errors)}")
    for group in report.ambiguous:
        print(f"  ⚠️  {group.name_key} {group.candidate_ids}: {group.reason}")
    for pair in report.possible_duplicates:
        print(f"  🔍 Posible duplicado: {pair.left} ~ {pair.right} ({pair.score:.1f})")


def _print_ranking(rows: List[Dict[str, Any]], mode: str):
    column = {
        "balanced": "score_balanced",
        "merit": "score_merit",
        "integrity": "score_integrity",
        "integrity_first": "score_integrity",
    }[mode]
    print(f"\n⭐ RANKING ({mode}):")
    for position, row in enumerate(rows, 1):
        print(
            f"  {position}. {row['full_name']} ({row['cargo']}) "
            f"{row[column]:.1f} | C={row['competence']} I={row['integrity']} "
            f"T={row['transparency']} conf={row['confidence']}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ranking Electoral: motor de puntajes")
    parser.add_argument(
        "--reference-year", type=int, help="Año de referencia para experiencia abierta"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    recompute = commands.add_parser("recompute", help="Recalcular todos los puntajes")
    recompute.add_argument("--ids", type=int, nargs="+", help="Solo estos candidatos")

    apply_penalty = commands.add_parser(
        "apply-penalty", help="Habilitar una categoría y reaplicar desde el baseline"
    )
    apply_penalty.add_argument("category", choices=PENALTY_CATEGORIES)
    apply_penalty.add_argument("--ids", type=int, nargs="+", help="Solo estos candidatos")

    commands.add_parser("reconcile", help="Completar registros hermanos y recalcular")

    ranking = commands.add_parser("ranking", help="Mostrar el ranking actual")
    ranking.add_argument(
        "--mode",
        choices=("balanced", "merit", "integrity", "integrity_first"),
        default="balanced",
    )
    ranking.add_argument("--limit", type=int, default=20)
    ranking.add_argument("--min-confidence", type=int, default=0)
    ranking.add_argument("--only-clean", action="store_true")
    ranking.add_argument("--cargo")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Función principal para ejecución desde línea de comandos.
    """
    args = build_parser().parse_args(argv)

    try:
        system = RankingEngineSystem(reference_year=args.reference_year)

        print("🔧 Inicializando motor...")
        if not system.initialize():
            return 1

        if args.command == "recompute":
            result = system.run_recompute(args.ids)
            _print_batch("RECÁLCULO COMPLETO", result)
        elif args.command == "apply-penalty":
            result = system.run_apply_penalty(args.category, args.ids)
            _print_batch(f"PENALIDAD {args.category.upper()}", result)
        elif args.command == "reconcile":
            _print_reconciliation(system.run_reconcile())
        else:
            rows = system.get_ranking(
                mode=args.mode,
                limit=args.limit,
                min_confidence=args.min_confidence,
                only_clean=args.only_clean,
                cargo=args.cargo,
            )
            _print_ranking(rows, args.mode)

        print("\n✅ Ejecución completada exitosamente!")
        return 0

    except KeyboardInterrupt:
        print("\n⚠️  Ejecución interrumpida por usuario")
        return 1
    except Exception as e:
        print(f"\n❌ Error durante ejecución: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
