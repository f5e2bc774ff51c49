"""Operations that run target code in the sandbox."""
