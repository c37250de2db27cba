type BlockNumber = int
type ChainId = int
type ReserveId = int
