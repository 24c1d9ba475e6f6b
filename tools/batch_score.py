# tools/batch_score.py
# - CSV(text 컬럼)의 동의서 문구를 일괄 채점해서 score/label/retention 컬럼을 붙여 저장
# - 규칙 테이블(rules.yaml) 수정 후 등급 분포가 어떻게 바뀌는지 확인하는 용도

import argparse
import json
import sys
from pathlib import Path

BASE = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE))

import pandas as pd

from consentrisk.risk_scorer import RiskScorer


def score_frame(df: pd.DataFrame, scorer: RiskScorer, column: str = "text") -> pd.DataFrame:
    if column not in df.columns:
        raise KeyError(f"column not found: {column!r} (have: {list(df.columns)})")
    results = [scorer.score("" if pd.isna(v) else str(v)) for v in df[column]]
    out = df.copy()
    out["score"] = [r.score for r in results]
    out["label"] = [r.label for r in results]
    out["retention"] = [r.retention for r in results]
    out["bullets"] = [" | ".join(r.bullets) for r in results]
    return out


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--csv", required=True)
    ap.add_argument("--out", default=None, help="기본: <입력>_scored.csv")
    ap.add_argument("--column", default="text")
    ap.add_argument("--rules", default=None, help="rules.yaml 경로 (기본: 패키지 내장)")
    args = ap.parse_args()

    src = Path(args.csv)
    df = pd.read_csv(src)
    scorer = RiskScorer(cfg_path=args.rules)
    scored = score_frame(df, scorer, column=args.column)

    out_path = Path(args.out) if args.out else src.with_name(f"{src.stem}_scored.csv")
    scored.to_csv(out_path, index=False, encoding="utf-8-sig")

    dist = scored["label"].value_counts().to_dict()
    print("=== LABEL DISTRIBUTION ===")
    print(json.dumps({k: int(v) for k, v in dist.items()}, ensure_ascii=False, indent=2))
    print(f"\nSaved: {out_path}")


if __name__ == "__main__":
    main()
