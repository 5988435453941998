# scripts/seed_products.py

import asyncio
from typing import List, Tuple

import typer

from sims.core.errors import ClassifiedError, ErrorKind
from sims.domains.inv import schemas as inv_schemas
from sims.services.invoicing_core import open_invoicing_core

cli = typer.Typer()


def parse_product(value: str) -> inv_schemas.ProductCreate:
    """'CODE:설명:잔량' 형식의 문자열을 상품 생성 스키마로 변환합니다."""
    try:
        code, description, balance = value.split(":", 2)
        return inv_schemas.ProductCreate(code=code, description=description, balance=int(balance))
    except ValueError as exc:
        raise typer.BadParameter(f"'{value}' 는 CODE:DESCRIPTION:BALANCE 형식이어야 합니다. ({exc})")


async def seed_products(products: List[inv_schemas.ProductCreate]) -> Tuple[int, int]:
    """
    재고 권한 서비스에 상품을 생성합니다.
    이미 존재하는 코드(409)는 건너뛰고, 그 외 에러는 중단합니다.
    """
    created = skipped = 0
    async with open_invoicing_core() as core:
        for product_in in products:
            try:
                product = await core.products.create_product(product_in)
            except ClassifiedError as exc:
                if exc.kind is not ErrorKind.CONFLICT:
                    raise
                print(f"건너뜀: 이미 존재하는 상품 코드입니다: {product_in.code}")
                skipped += 1
                continue
            print(f"생성됨: {product.code} ({product.description}) 잔량 {product.balance}")
            created += 1
    return created, skipped


@cli.command()
def main(
    products: List[str] = typer.Argument(
        ...,
        help="생성할 상품 목록. 각 항목은 CODE:DESCRIPTION:BALANCE 형식입니다.",
    ),
):
    """
    재고 권한 서비스(STOCK_SERVICE_URL)에 초기 상품 카탈로그를 등록합니다.
    """
    products_in = [parse_product(value) for value in products]

    print("상품 등록을 시작합니다...")
    try:
        created, skipped = asyncio.run(seed_products(products_in))
    except ClassifiedError as exc:
        print(f"오류 ({exc.kind.value}): {exc.message}")
        raise typer.Exit(code=1)
    print(f"완료: {created}개 생성, {skipped}개 건너뜀")


if __name__ == "__main__":
    cli()
